import os
import time

import pytest

from beesdeploy.config.validation import validate_against_schema, validate_project
from beesdeploy.deployment.utils import (
    deep_merge,
    find_war_file,
    get_archive_type,
    get_environment_list,
    load_project_config,
    validate_project_before_action,
)
from beesdeploy.errors import ConfigurationError

from conftest import write_war

PROJECT_YAML = """
packaging: war
war_file: target/shop-1.0.war
deploy_file: build/deploy.zip
parameters:
  DB_URL: jdbc:mysql://db/shop
  POOL: 5
settings:
  app_id: acme/shop
  delta: false
  proxy_port: 3128
"""


def test_valid_project_file(tmp_path):
    project_file = tmp_path / "bees-deploy.yaml"
    project_file.write_text(PROJECT_YAML)
    assert validate_project(project_file) == (True, [])


def test_empty_project_file_is_valid(tmp_path):
    project_file = tmp_path / "bees-deploy.yaml"
    project_file.write_text("")
    assert validate_project(project_file) == (True, [])


def test_missing_project_file(tmp_path):
    is_valid, errors = validate_project(tmp_path / "nope.yaml")
    assert not is_valid
    assert "File not found" in errors[0]


def test_yaml_syntax_error(tmp_path):
    project_file = tmp_path / "bees-deploy.yaml"
    project_file.write_text("settings: [unclosed\n")
    is_valid, errors = validate_project(project_file)
    assert not is_valid
    assert "YAML syntax error" in errors[0]


def test_schema_reports_every_error():
    is_valid, errors = validate_against_schema({
        'war_file': 42,
        'settings': {'colour': 'blue', 'api_url': 'ftp://nope'},
    })
    assert not is_valid
    assert len(errors) == 3
    assert any("war_file" in e for e in errors)
    assert any("settings -> api_url" in e for e in errors)


def test_unknown_top_level_key_is_rejected():
    is_valid, errors = validate_against_schema({'servers': {}})
    assert not is_valid


def test_validate_before_action_raises(tmp_path, capsys):
    project_file = tmp_path / "bees-deploy.yaml"
    project_file.write_text("packaging: [war]\n")

    with pytest.raises(ConfigurationError):
        validate_project_before_action(project_file)

    assert "Project validation failed" in capsys.readouterr().out


def test_load_project_config_defaults(tmp_path):
    write_war(tmp_path / "target" / "shop.war")
    project = load_project_config(tmp_path / "bees-deploy.yaml")

    assert project['packaging'] == 'war'
    assert project['war_file'] == tmp_path / "target" / "shop.war"
    assert project['app_config'] == tmp_path / "src" / "main" / "config" / "stax-application.xml"
    assert project['appxml'] == tmp_path / "src" / "main" / "config" / "application.xml"
    assert project['deploy_file'] == tmp_path / "target" / "stax-deploy.zip"
    assert project['parameters'] == {}


def test_load_project_config_from_file(tmp_path):
    project_file = tmp_path / "bees-deploy.yaml"
    project_file.write_text(PROJECT_YAML)

    project = load_project_config(project_file)

    assert project['war_file'] == tmp_path / "target" / "shop-1.0.war"
    assert project['deploy_file'] == tmp_path / "build" / "deploy.zip"
    assert project['parameters'] == {'DB_URL': 'jdbc:mysql://db/shop', 'POOL': 5}
    assert project['settings']['app_id'] == 'acme/shop'


def test_local_overrides_are_merged(tmp_path, monkeypatch):
    (tmp_path / "bees-deploy.yaml").write_text(PROJECT_YAML)
    (tmp_path / "bees-deploy.local.yaml").write_text("settings:\n  app_id: acme/shop-dev\n")

    project = load_project_config(tmp_path / "bees-deploy.yaml")
    assert project['settings']['app_id'] == 'acme/shop'

    monkeypatch.setenv("BEES_DEPLOY_ENV", "local")
    project = load_project_config(tmp_path / "bees-deploy.yaml")
    assert project['settings']['app_id'] == 'acme/shop-dev'
    assert project['settings']['proxy_port'] == 3128


def test_find_war_file_picks_newest(tmp_path):
    old = write_war(tmp_path / "target" / "old.war")
    new = write_war(tmp_path / "target" / "new.war")
    past = time.time() - 3600
    os.utime(old, (past, past))

    assert find_war_file(tmp_path) == str(new)
    assert find_war_file(tmp_path / "empty") is None


def test_deep_merge():
    base = {'a': 1, 'nested': {'x': 1, 'y': 2}}
    assert deep_merge(base, {'nested': {'y': 3}, 'b': 2}) == {'a': 1, 'b': 2, 'nested': {'x': 1, 'y': 3}}
    assert base['nested'] == {'x': 1, 'y': 2}


def test_get_environment_list():
    assert get_environment_list(None) == []
    assert get_environment_list("") == []
    assert get_environment_list(" prod, eu ,,") == ['prod', 'eu']


def test_get_archive_type():
    assert get_archive_type("target/shop.war") == 'war'
    assert get_archive_type("target/stax-deploy.zip") == 'ear'


def test_local_overrides_with_yaml_error_raise(tmp_path, monkeypatch):
    (tmp_path / "bees-deploy.yaml").write_text(PROJECT_YAML)
    (tmp_path / "bees-deploy.local.yaml").write_text("settings: [unclosed\n")
    monkeypatch.setenv("BEES_DEPLOY_ENV", "local")

    with pytest.raises(ConfigurationError) as excinfo:
        load_project_config(tmp_path / "bees-deploy.yaml")

    assert "YAML syntax error" in str(excinfo.value)


def test_local_overrides_are_validated(tmp_path, monkeypatch):
    (tmp_path / "bees-deploy.yaml").write_text(PROJECT_YAML)
    (tmp_path / "bees-deploy.local.yaml").write_text("settings: [a, b]\n")
    monkeypatch.setenv("BEES_DEPLOY_ENV", "local")

    with pytest.raises(ConfigurationError) as excinfo:
        load_project_config(tmp_path / "bees-deploy.yaml")

    assert "Invalid local project file" in str(excinfo.value)
    assert "settings" in str(excinfo.value)
