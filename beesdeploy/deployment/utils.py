#!/usr/bin/env python3
"""
Deployment utilities - shared helper functions.
"""

import copy
import glob
import os
from pathlib import Path

import yaml

from ..config.validation import validate_project
from ..errors import ConfigurationError

DEFAULT_PROJECT_FILE = "bees-deploy.yaml"
LOCAL_PROJECT_FILE = "bees-deploy.local.yaml"

PROJECT_DEFAULTS = {
    'packaging': 'war',
    'war_file': None,
    'app_config': 'src/main/config/stax-application.xml',
    'appxml': 'src/main/config/application.xml',
    'deploy_file': 'target/stax-deploy.zip',
    'parameters': {},
    'settings': {},
}

PATH_KEYS = ('war_file', 'app_config', 'appxml', 'deploy_file')


def load_yaml(file_path):
    with open(file_path, 'r') as f:
        return yaml.safe_load(f)


def deep_merge(base, override):
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def find_war_file(base_dir):
    """Most recently built target/*.war under base_dir, or None."""
    pattern = str(Path(base_dir) / "target" / "*.war")
    files = sorted(glob.glob(pattern), key=os.path.getmtime, reverse=True)
    return files[0] if files else None


def load_project_config(project_file=None):
    """
    Load project parameters with optional local overrides.
    - Default: bees-deploy.yaml next to the working directory (optional)
    - BEES_DEPLOY_ENV=local: merges bees-deploy.local.yaml overrides
    Relative paths are resolved against the project file's directory.
    """
    project_path = Path(project_file) if project_file else Path.cwd() / DEFAULT_PROJECT_FILE
    base_dir = project_path.parent

    project = copy.deepcopy(PROJECT_DEFAULTS)
    if project_path.exists():
        project = deep_merge(project, load_yaml(project_path) or {})

    env = os.environ.get('BEES_DEPLOY_ENV', '').strip()
    if env == 'local':
        override_path = base_dir / LOCAL_PROJECT_FILE
        if override_path.exists():
            is_valid, errors = validate_project(override_path)
            if not is_valid:
                raise ConfigurationError(f"Invalid local project file {override_path}", "; ".join(errors))
            project = deep_merge(project, load_yaml(override_path) or {})

    for key in PATH_KEYS:
        if project.get(key):
            path = Path(project[key]).expanduser()
            project[key] = path if path.is_absolute() else base_dir / path

    if not project.get('war_file'):
        war_file = find_war_file(base_dir)
        project['war_file'] = Path(war_file) if war_file else None

    project['base_dir'] = base_dir
    return project


def validate_project_before_action(project_file):
    """Helper to run validation and raise on failure."""
    print("\n=== VALIDATING PROJECT FILE ===")
    is_valid, errors = validate_project(project_file)
    if not is_valid:
        print("Project validation failed:")
        for error in errors:
            print(f"  - {error}")
        raise ConfigurationError(f"Invalid project file {project_file}", "; ".join(errors))
    print("[OK] Project validation successful\n")


def get_environment_list(environment):
    """'prod, eu ,' -> ['prod', 'eu']"""
    if not environment:
        return []
    return [env.strip() for env in environment.split(',') if env.strip()]


def get_archive_type(deploy_file):
    return 'war' if Path(deploy_file).name.endswith('.war') else 'ear'


def is_war_project(packaging):
    return packaging == 'war'
