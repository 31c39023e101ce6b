#!/usr/bin/env python3
"""
Deployment archive packaging.
Merges the web archive and its two descriptors into a single zip.
"""

import zipfile
from pathlib import Path

from ..errors import PackagingError

WEBAPP_ENTRY = "webapp.war"
PLATFORM_DESCRIPTOR_ENTRY = "META-INF/stax-application.xml"
APPLICATION_DESCRIPTOR_ENTRY = "META-INF/application.xml"


def should_package(app_config, appxml):
    """Both descriptors must exist on disk to build a deployment archive."""
    return (
        app_config is not None and Path(app_config).exists() and
        appxml is not None and Path(appxml).exists()
    )


def create_deployment_archive(war_file, app_config, appxml, deploy_file):
    """
    Write the deployment zip. Entries are written in this order:
    webapp.war, META-INF/stax-application.xml, META-INF/application.xml
    """
    deploy_path = Path(deploy_file)
    print(f"Creating deployment archive: {deploy_path.name}")

    try:
        deploy_path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(deploy_path, 'w', zipfile.ZIP_DEFLATED) as zipf:
            zipf.write(war_file, arcname=WEBAPP_ENTRY)
            zipf.write(app_config, arcname=PLATFORM_DESCRIPTOR_ENTRY)
            zipf.write(appxml, arcname=APPLICATION_DESCRIPTOR_ENTRY)
    except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        raise PackagingError(cause=e) from e

    print(f"Archive created: {deploy_path}")
    return deploy_path


def package_deployment(war_file, app_config, appxml, deploy_file):
    """
    Return the artifact to upload.

    Packages war_file with both descriptors into deploy_file when both
    descriptors exist, otherwise returns war_file untouched.
    """
    if war_file is None:
        raise PackagingError("No web archive found; build the project or set war_file")

    if should_package(app_config, appxml):
        return create_deployment_archive(war_file, app_config, appxml, deploy_file)

    print(f"No deployment descriptors found, deploying {Path(war_file).name} as-is")
    return Path(war_file)
