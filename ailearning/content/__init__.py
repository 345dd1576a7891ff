"""
Bundled course content: one YAML file per module under modules/.
"""
