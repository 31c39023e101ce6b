#!/usr/bin/env python3
"""
Project file validation.
Checks bees-deploy.yaml against the JSON schema shipped with the package.
"""

import json
from pathlib import Path

import jsonschema
import yaml

SCHEMA_FILE = Path(__file__).parent.parent / 'schemas' / 'project-schema.json'


def load_yaml(file_path):
    """Load YAML file safely. Returns (data, error)."""
    try:
        with open(file_path, 'r') as f:
            return yaml.safe_load(f), None
    except yaml.YAMLError as e:
        return None, str(e)
    except OSError as e:
        return None, str(e)


def load_schema(schema_file=SCHEMA_FILE):
    with open(schema_file, 'r') as f:
        return json.load(f)


def validate_against_schema(project, schema_file=SCHEMA_FILE):
    """
    Validate a parsed project dict against the project schema.
    Returns (is_valid, errors_list)
    """
    try:
        schema = load_schema(schema_file)
    except (OSError, ValueError) as e:
        return False, [f"Error loading schema file: {e}"]

    try:
        validator = jsonschema.Draft7Validator(schema)
    except jsonschema.SchemaError as e:
        return False, [f"Schema file is invalid: {e.message}"]

    errors = []
    for error in sorted(validator.iter_errors(project), key=lambda e: list(e.path)):
        error_path = ' -> '.join(str(p) for p in error.path) if error.path else 'root'
        errors.append(f"Schema validation failed at '{error_path}': {error.message}")

    return len(errors) == 0, errors


def validate_project(project_file):
    """
    Validate a project file on disk.
    An empty file is valid (every key has a default).
    """
    project_path = Path(project_file)

    if not project_path.exists():
        return False, [f"File not found: {project_file}"]

    project, err = load_yaml(project_path)
    if err:
        return False, [f"YAML syntax error: {err}"]

    if project is None:
        return True, []

    if not isinstance(project, dict):
        return False, ["Project file must contain a mapping at the top level"]

    return validate_against_schema(project)
