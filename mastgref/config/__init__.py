"""Workspace configuration (``mastgref.yml``).

    from mastgref.config import load_workspace_config
    config = load_workspace_config(root)
"""

from mastgref.config.loader import expand_env_vars, load_config, load_workspace_config
from mastgref.config.schema import AnnotationConfig, ScanConfig, TaxonomyConfig, WorkspaceConfig

__all__ = [
    "AnnotationConfig",
    "ScanConfig",
    "TaxonomyConfig",
    "WorkspaceConfig",
    "expand_env_vars",
    "load_config",
    "load_workspace_config",
]
