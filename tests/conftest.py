import os
import zipfile

import pytest

from beesdeploy.client import DeployClient, DeployResponse
from beesdeploy.config.settings import resolve_config

STAX_APPLICATION_XML = """<?xml version="1.0" encoding="UTF-8"?>
<stax-application xmlns="http://www.stax.net/stax-application/1.0">
  <appid>acme/shop</appid>
  <environment name="prod">
    <context-param><param-name>mode</param-name><param-value>prod</param-value></context-param>
  </environment>
  <environment name="staging"/>
  <environment name="deploy"/>
</stax-application>
"""

APPLICATION_XML = """<?xml version="1.0" encoding="UTF-8"?>
<application>
  <display-name>shop</display-name>
  <module><web><web-uri>webapp.war</web-uri><context-root>/</context-root></web></module>
</application>
"""


class FakeDeployClient(DeployClient):
    """Records deploy calls instead of talking to the network."""

    def __init__(self, configuration, error=None):
        super().__init__(configuration)
        self.calls = []
        self.error = error
        self.closed = False

    def deploy_archive(self, args):
        self.calls.append(args)
        if self.error:
            raise self.error
        name = args.app_id.split('/')[-1]
        return DeployResponse(id=args.app_id, url=f"http://{name}.acme.example.net")

    def close(self):
        self.closed = True


class ClientRecorder:
    """Client factory that keeps every client it builds."""

    def __init__(self, error=None):
        self.clients = []
        self.error = error

    def __call__(self, configuration):
        client = FakeDeployClient(configuration, self.error)
        self.clients.append(client)
        return client

    @property
    def calls(self):
        return [call for client in self.clients for call in client.calls]


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep the real home directory and BEES_* variables out of every test."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for name in list(os.environ):
        if name.startswith("BEES_"):
            monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def client_recorder():
    return ClientRecorder()


def write_war(path, extra_entries=None):
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, 'w') as zipf:
        zipf.writestr("WEB-INF/web.xml", "<web-app/>")
        zipf.writestr("index.html", "<html>shop</html>")
        for name, content in (extra_entries or {}).items():
            zipf.writestr(name, content)
    return path


@pytest.fixture
def project_dir(tmp_path):
    """A built war project with both descriptors present."""
    base = tmp_path / "project"
    write_war(base / "target" / "shop-1.0.war")
    config_dir = base / "src" / "main" / "config"
    config_dir.mkdir(parents=True)
    (config_dir / "stax-application.xml").write_text(STAX_APPLICATION_XML)
    (config_dir / "application.xml").write_text(APPLICATION_XML)
    return base


@pytest.fixture
def project(project_dir):
    return {
        'packaging': 'war',
        'war_file': project_dir / "target" / "shop-1.0.war",
        'app_config': project_dir / "src" / "main" / "config" / "stax-application.xml",
        'appxml': project_dir / "src" / "main" / "config" / "application.xml",
        'deploy_file': project_dir / "target" / "stax-deploy.zip",
        'parameters': {},
        'settings': {},
        'base_dir': project_dir,
    }


def make_config(user_config=None, environ=None, **overrides):
    """EffectiveConfig with explicit -D style overrides and nothing from the host."""
    return resolve_config(
        overrides=overrides,
        environ=environ or {},
        user_config=user_config or {},
    )


@pytest.fixture
def config_factory():
    return make_config


@pytest.fixture
def credentials_config():
    return make_config(**{'bees.apikey': 'KEY123456', 'bees.secret': 's3cret'})

