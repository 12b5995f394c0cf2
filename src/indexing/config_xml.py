"""Parser for the ``config.xml`` module descriptor shipped inside an .omod.

Descriptors commonly declare a DOCTYPE pointing at a relative DTD path
that does not exist outside the module's source tree. ElementTree never
resolves external DTDs, so such documents parse offline; commented-out
DOCTYPEs are ordinary comments.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import List, Optional, Union

from domain import AddOnVersion, ModuleRequirement


class ConfigXmlError(ValueError):
    """The descriptor is not well-formed XML."""


def _text(root: ET.Element, tag: str) -> Optional[str]:
    elem = root.find(tag)
    if elem is None or elem.text is None:
        return None
    text = elem.text.strip()
    return text or None


def _require_modules(root: ET.Element) -> Optional[List[ModuleRequirement]]:
    container = root.find("require_modules")
    if container is None:
        return None
    modules = []
    for elem in container.findall("require_module"):
        module = (elem.text or "").strip()
        if module:
            modules.append(ModuleRequirement(module=module, version=elem.get("version") or "?"))
    return modules


def _supported_languages(root: ET.Element) -> List[str]:
    languages = []
    for messages in root.findall("messages"):
        lang = _text(messages, "lang")
        if lang:
            languages.append(lang)
    return languages


def handle_config_xml(config_xml: Union[str, bytes], version: AddOnVersion) -> AddOnVersion:
    """Copy module id, package, requirements and languages onto ``version``.

    Missing optional elements become None; ``require_modules`` is None when
    ``<require_modules>`` is absent, not an empty list.

    Raises:
        ConfigXmlError: only for malformed XML.
    """
    try:
        root = ET.fromstring(config_xml)
    except ET.ParseError as exc:
        raise ConfigXmlError(f"Malformed config.xml: {exc}") from exc

    version.module_id = _text(root, "id")
    version.module_package = _text(root, "package")
    version.require_openmrs_version = _text(root, "require_version")
    version.require_modules = _require_modules(root)
    version.supported_languages = _supported_languages(root)
    return version
