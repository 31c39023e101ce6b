#!/usr/bin/env python3
"""
Application descriptor lookup and parsing.

The descriptor is read from the deployment artifact itself. Recognised entry
names are checked in priority order; the first one present wins.
"""

import sys
import zipfile
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

DESCRIPTOR_PATHS = (
    "META-INF/stax-application.xml",
    "WEB-INF/stax-web.xml",
    "WEB-INF/cloudbees-web.xml",
)

IMPLICIT_ENVIRONMENTS = ("deploy",)


@dataclass
class AppDescriptor:
    app_id: str = None
    environments: list = field(default_factory=list)
    applied_environments: list = field(default_factory=list)
    source: str = None

    @property
    def environment_string(self):
        return ",".join(self.applied_environments)


def _local_name(tag):
    return tag.rsplit('}', 1)[-1]


def parse_descriptor(data, environments=(), implicit_environments=IMPLICIT_ENVIRONMENTS):
    """
    Parse descriptor XML bytes.

    <environment name="..."> blocks are applied when their name is one of the
    requested environments or an implicit one. Raises ET.ParseError on
    malformed XML.
    """
    root = ET.fromstring(data)
    descriptor = AppDescriptor()
    wanted = set(environments) | set(implicit_environments)

    for child in root:
        name = _local_name(child.tag)
        if name == 'appid' and child.text and child.text.strip():
            descriptor.app_id = child.text.strip()
        elif name == 'environment':
            env_name = (child.get('name') or '').strip()
            if not env_name:
                continue
            descriptor.environments.append(env_name)
            if env_name in wanted and env_name not in descriptor.applied_environments:
                descriptor.applied_environments.append(env_name)

    return descriptor


def find_descriptor_entry(names):
    """First recognised descriptor path present in the archive entry names."""
    present = set(names)
    for path in DESCRIPTOR_PATHS:
        if path in present:
            return path
    return None


def read_app_descriptor(deploy_file, environments=(), implicit_environments=IMPLICIT_ENVIRONMENTS):
    """
    Read the application descriptor out of a deployment artifact.

    An artifact that is not a zip, or that holds no recognised descriptor,
    yields an empty descriptor.
    """
    try:
        with zipfile.ZipFile(deploy_file, 'r') as zipf:
            entry = find_descriptor_entry(zipf.namelist())
            if entry is None:
                print(f"WARNING: No application descriptor found in {deploy_file}", file=sys.stderr)
                return AppDescriptor()
            data = zipf.read(entry)
    except zipfile.BadZipFile:
        print(f"WARNING: {deploy_file} is not a zip archive, no application descriptor read", file=sys.stderr)
        return AppDescriptor()

    descriptor = parse_descriptor(data, environments, implicit_environments)
    descriptor.source = entry
    return descriptor
