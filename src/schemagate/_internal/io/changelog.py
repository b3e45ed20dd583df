"""Changelog and docker-compose parsing (internal).

Changelogs are read as YAML, JSON or XML documents and walked structurally,
so an include that is commented out is never followed.
"""

import json
import logging
import xml.etree.ElementTree as ET
from typing import Any, Iterator, List, Tuple

import yaml

logger = logging.getLogger(__name__)

DATABASE_IMAGES = ("mysql", "mariadb")

# ("file", "db/changelog/001.sql") or ("directory", "sqlfiles/")
ChangelogReference = Tuple[str, str]


def load_document(name: str, text: str) -> Any:
    """Parse a YAML or JSON document. Malformed input is logged and yields None."""
    try:
        if name.lower().endswith(".json"):
            return json.loads(text)
        return yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        logger.warning("Cannot parse %s: %s", name, exc)
        return None


def _local_name(tag: Any) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _xml_references(name: str, text: str) -> List[ChangelogReference]:
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        logger.warning("Cannot parse %s: %s", name, exc)
        return []
    references: List[ChangelogReference] = []
    for element in root.iter():
        tag = _local_name(element.tag)
        if tag == "include" and element.get("file"):
            references.append(("file", element.get("file")))
        elif tag == "includeAll" and element.get("path"):
            references.append(("directory", element.get("path")))
        elif tag == "sqlFile" and element.get("path"):
            references.append(("file", element.get("path")))
    return references


def _mapping(value: Any, key: str) -> Any:
    return value.get(key) if isinstance(value, dict) else None


def _document_references(document: Any) -> Iterator[ChangelogReference]:
    entries = _mapping(document, "databaseChangeLog")
    if not isinstance(entries, list):
        return
    for entry in entries:
        included = _mapping(_mapping(entry, "include"), "file")
        if isinstance(included, str):
            yield "file", included
        directory = _mapping(_mapping(entry, "includeAll"), "path")
        if isinstance(directory, str):
            yield "directory", directory
        changes = _mapping(_mapping(entry, "changeSet"), "changes")
        for change in changes if isinstance(changes, list) else ():
            script = _mapping(_mapping(change, "sqlFile"), "path")
            if isinstance(script, str):
                yield "file", script


def changelog_references(name: str, text: str) -> List[ChangelogReference]:
    """Scripts and directories a changelog includes, in document order."""
    if name.lower().endswith(".xml"):
        return _xml_references(name, text)
    return list(_document_references(load_document(name, text)))


def compose_database_images(name: str, text: str) -> List[Tuple[str, str]]:
    """(image, flavor) for every compose service running MySQL or MariaDB."""
    services = _mapping(load_document(name, text), "services")
    if not isinstance(services, dict):
        return []
    images = []
    for service in services.values():
        image = _mapping(service, "image")
        if not isinstance(image, str):
            continue
        flavor = next((f for f in DATABASE_IMAGES if f in image.lower()), None)
        if flavor is not None:
            images.append((image, flavor))
    return images
