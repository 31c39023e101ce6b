#!/usr/bin/env python3
"""
Deployment Orchestrator
Packages the web archive with its descriptors and deploys it to the platform API.

Resolve config -> package archive -> invoke deployment. Each run ends in one
of four states (see DeployOutcome); nothing is retried.
"""

import argparse
import enum
import sys
from pathlib import Path

from .archive import package_deployment
from .credentials import ConsoleCredentialProvider, StaticCredentialProvider, acquire_credentials
from .descriptor import IMPLICIT_ENVIRONMENTS, read_app_descriptor
from .utils import (
    load_project_config, validate_project_before_action,
    get_environment_list, get_archive_type, is_war_project,
    DEFAULT_PROJECT_FILE
)
from ..client import ClientConfiguration, DeployArgs, HashWriteProgress, get_deploy_client
from ..config.settings import format_setting_value, parse_overrides, resolve_config
from ..errors import (
    BeesDeployError, ConfigurationError, DeploymentError, MissingApplicationId,
    PackagingError, UnqualifiedApplicationId
)


class DeployOutcome(enum.Enum):
    NOT_APPLICABLE = 'not_applicable'
    PACKAGE_FAILED = 'package_failed'
    DEPLOY_FAILED = 'deploy_failed'
    DEPLOYED = 'deployed'


def _print_phase(phase_num, phase_name):
    """Helper to print phase headers."""
    print(f"\n{'='*60}")
    if phase_num:
        print(f"PHASE {phase_num}: {phase_name}")
    else:
        print(f"{phase_name}")
    print(f"{'='*60}")


def resolve_app_id(config, descriptor, provider):
    """Configured id, else the descriptor's id, else ask the provider."""
    app_id = config.app_id
    if not app_id:
        app_id = descriptor.app_id
        if not app_id:
            app_id = provider.app_id()
        if not app_id:
            raise MissingApplicationId()
    return app_id


def qualify_app_id(app_id, default_domain):
    """Ensure app_id has the form domain/name, prepending default_domain if needed."""
    domain, _, name = app_id.partition('/')
    if domain and name:
        return app_id
    name = app_id.strip('/')
    if default_domain and name:
        return f"{default_domain}/{name}"
    raise UnqualifiedApplicationId(app_id)


def build_client_configuration(config, api_key, secret):
    return ClientConfiguration(
        api_url=config.api_url,
        api_key=api_key,
        secret=secret,
        format='xml',
        version='1.0',
        proxy_host=config.proxy_host,
        proxy_port=config.proxy_port_number(),
        proxy_user=config.proxy_user,
        proxy_password=config.proxy_password,
    )


def build_deploy_args(app_id, environment, config, deploy_file, progress=None):
    params = {}
    if config.container_type is not None:
        params['containerType'] = config.container_type

    return DeployArgs(
        app_id=app_id,
        archive_file=str(deploy_file),
        archive_type=get_archive_type(deploy_file),
        environment=environment,
        description=config.message,
        incremental=config.is_delta,
        params=params,
        variables={str(k): format_setting_value(v) for k, v in config.variables.items()},
        progress=progress,
    )


def invoke_deployment(deploy_file, config, provider, client_factory=None, progress=None):
    """
    Upload deploy_file and return the DeployResponse.
    Any failure is raised as DeploymentError carrying the original cause.
    """
    client_factory = client_factory or get_deploy_client
    try:
        api_key, secret = acquire_credentials(config, provider)

        descriptor = read_app_descriptor(
            deploy_file,
            get_environment_list(config.environment),
            IMPLICIT_ENVIRONMENTS
        )
        app_id = resolve_app_id(config, descriptor, provider)
        app_id = qualify_app_id(app_id, config.app_domain)
        environment = descriptor.environment_string

        print(f"Deploying application {app_id} (environment: {environment})")

        client = client_factory(build_client_configuration(config, api_key, secret))
        try:
            client.set_verbose(config.is_verbose)
            args = build_deploy_args(app_id, environment, config, deploy_file, progress)
            response = client.deploy_archive(args)
        finally:
            client.close()
    except Exception as e:
        raise DeploymentError(cause=e) from e

    print(f"Application {response.id} deployed: {response.url}")
    return response


def deploy(project, config, provider=None, client_factory=None, progress=None):
    """
    Run the full package -> deploy sequence for a loaded project.

    Returns (DeployOutcome, DeployResponse or None). Raises PackagingError or
    DeploymentError on failure.
    """
    if not is_war_project(project.get('packaging')):
        print(f"Skipping deployment: packaging is '{project.get('packaging')}', not a web application")
        return DeployOutcome.NOT_APPLICABLE, None

    provider = provider or ConsoleCredentialProvider()

    _print_phase(1, "PACKAGE")
    deploy_file = package_deployment(
        project.get('war_file'), project.get('app_config'),
        project.get('appxml'), project.get('deploy_file')
    )

    _print_phase(2, "DEPLOY")
    response = invoke_deployment(deploy_file, config, provider, client_factory, progress)
    return DeployOutcome.DEPLOYED, response


def _load_run_context(project_file, overrides, war_file=None, packaging=None):
    project_path = Path(project_file) if project_file else Path.cwd() / DEFAULT_PROJECT_FILE
    if project_file and not project_path.exists():
        raise ConfigurationError(f"Project file not found: {project_file}")
    if project_path.exists():
        validate_project_before_action(project_path)

    project = load_project_config(project_path)
    if war_file:
        project['war_file'] = Path(war_file)
    if packaging:
        project['packaging'] = packaging

    config = resolve_config(
        overrides=parse_overrides(overrides),
        project_settings=project.get('settings'),
        variables=project.get('parameters'),
    )
    return project, config


def deploy_command(project_file=None, overrides=None, war_file=None, packaging=None, interactive=True):
    """CLI deploy: returns the terminal DeployOutcome, printing any failure."""
    _print_phase(None, "DEPLOYMENT")
    try:
        project, config = _load_run_context(project_file, overrides, war_file, packaging)
    except BeesDeployError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return DeployOutcome.DEPLOY_FAILED

    provider = ConsoleCredentialProvider() if interactive else StaticCredentialProvider()

    try:
        outcome, _ = deploy(project, config, provider, progress=HashWriteProgress())
    except PackagingError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return DeployOutcome.PACKAGE_FAILED
    except DeploymentError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return DeployOutcome.DEPLOY_FAILED

    print("=" * 60)
    print(f"DEPLOYMENT {outcome.name}")
    print("=" * 60)
    return outcome


def validate_command(project_file=None, overrides=None):
    """Validate the project file and check the run has what it needs."""
    _print_phase(None, "VALIDATING DEPLOYMENT PREREQUISITES")
    ok = True

    # 1. Project file
    print("[1/3] Validating project file...")
    try:
        project, config = _load_run_context(project_file, overrides)
    except BeesDeployError as e:
        print(f"✗ ERROR: {e}")
        return False
    print()

    # 2. Artifacts
    print("[2/3] Checking artifacts...")
    war_file = project.get('war_file')
    if war_file and Path(war_file).exists():
        print(f"  ✓ Web archive: {war_file}")
    else:
        print(f"  ✗ Web archive not found: {war_file or 'target/*.war'}")
        ok = False

    for key in ('app_config', 'appxml'):
        path = project.get(key)
        if path and Path(path).exists():
            print(f"  ✓ Descriptor: {path}")
        else:
            print(f"  - Descriptor not found: {path} (web archive will be deployed as-is)")
    print()

    # 3. Credentials
    print("[3/3] Checking credentials...")
    if config.api_key and config.secret:
        print("  ✓ API key and secret configured")
    else:
        print("  - API key/secret not configured, you will be prompted")
    if config.app_id:
        print(f"  ✓ Application id: {config.app_id}")
    print()

    print("=" * 60)
    print("✓ ALL VALIDATION CHECKS PASSED" if ok else "✗ VALIDATION FAILED")
    print("=" * 60)
    return ok


def main(argv=None):
    """Main entry point - parse command line and run deployment."""
    parser = argparse.ArgumentParser(
        prog='beesdeploy',
        description='Package and deploy a web application to the CloudBees platform',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Deploy using bees-deploy.yaml in the current directory
  beesdeploy deploy

  # Override settings for one run
  beesdeploy deploy -D bees.appid=acme/shop -D bees.environment=prod -D bees.delta=false

  # Check the project before deploying
  beesdeploy validate --project bees-deploy.yaml
        """
    )
    parser.add_argument('command', choices=['deploy', 'validate'], help='Command to run')
    parser.add_argument('--project', help=f'Project file (default: ./{DEFAULT_PROJECT_FILE})')
    parser.add_argument('--war', help='Web archive to deploy (default: project war_file or newest target/*.war)')
    parser.add_argument('--packaging', help="Project packaging kind (default: project packaging or 'war')")
    parser.add_argument('-D', dest='overrides', action='append', default=[], metavar='KEY=VALUE',
                        help='Setting override, e.g. -D bees.appid=acme/shop (repeatable)')
    parser.add_argument('--non-interactive', action='store_true',
                        help='Never prompt for missing credentials or application id')
    args = parser.parse_args(argv)

    if args.command == 'validate':
        ok = validate_command(args.project, args.overrides)
        sys.exit(0 if ok else 1)

    outcome = deploy_command(
        args.project, args.overrides, args.war, args.packaging,
        interactive=not args.non_interactive
    )
    sys.exit(0 if outcome in (DeployOutcome.DEPLOYED, DeployOutcome.NOT_APPLICABLE) else 1)


if __name__ == '__main__':
    main()
