"""
AI Learning Lab - Generative AI course content, progress tracking and live labs.
"""

__version__ = "0.1.0"
