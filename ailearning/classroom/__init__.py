"""
AI Learning Lab Classroom - Runtime components for content and progress.

This module provides:
- ContentCatalog: Ordered, read-only module/lesson catalog
- ProgressTracker: Per-learner progress with pluggable storage
- Navigator: Module availability, sequencing and completion flow
"""

from .loader import (
    load_modules,
    load_modules_from_dir,
)

from .catalog import (
    ContentCatalog,
    load_catalog,
    get_catalog,
)

from .storage import (
    StorageError,
    ProgressStore,
    LocalProgressStore,
    CloudProgressStore,
    STORAGE_KEY,
    DEFAULT_LOCAL_STORAGE_PATH,
)

from .progress import (
    ProgressTracker,
)

from .navigator import (
    Navigator,
    ModuleAvailability,
    NavigationLesson,
    NavigationModule,
)

__all__ = [
    # Loader
    "load_modules",
    "load_modules_from_dir",
    # Catalog
    "ContentCatalog",
    "load_catalog",
    "get_catalog",
    # Storage
    "StorageError",
    "ProgressStore",
    "LocalProgressStore",
    "CloudProgressStore",
    "STORAGE_KEY",
    "DEFAULT_LOCAL_STORAGE_PATH",
    # Progress
    "ProgressTracker",
    # Navigator
    "Navigator",
    "ModuleAvailability",
    "NavigationLesson",
    "NavigationModule",
]
