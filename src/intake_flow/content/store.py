"""Localized content bundles for the intake wizard.

One YAML bundle per supported language holds:
 - labels: wizard chrome (titles, buttons, legal disclaimer)
 - messages: validation and submission notices
 - case_types: the selectable case-type catalog
 - flows: prompt text and option labels per case type and node

The store is read-only. Bundles are parsed once and cached; structure is checked
by the flow builder, not here.
"""
from __future__ import annotations

import os
import logging
from functools import lru_cache
from typing import Any, Dict, List

import yaml

from intake_flow.errors import ContentIntegrityError

logger = logging.getLogger(__name__)

CONTENT_DIR = os.getenv("CONTENT_DIR") or os.path.dirname(os.path.abspath(__file__))
SUPPORTED_LANGUAGES = ('en', 'es')
DEFAULT_LANGUAGE = 'en'
REQUIRED_SECTIONS = ('labels', 'messages', 'case_types', 'flows')


def normalize_language(language: str | None) -> str:
    """Map a language tag such as 'es-MX' or 'EN' onto a supported bundle key."""
    if not language:
        return DEFAULT_LANGUAGE
    tag = str(language).strip().lower().replace('_', '-').split('-')[0]
    if tag not in SUPPORTED_LANGUAGES:
        raise ValueError(f"Unsupported language '{language}'. Expected one of {SUPPORTED_LANGUAGES}")
    return tag


def bundle_path(language: str) -> str:
    return os.path.join(CONTENT_DIR, f"{language}.yml")


@lru_cache(maxsize=len(SUPPORTED_LANGUAGES))
def get_translations(language: str) -> Dict[str, Any]:
    lang = normalize_language(language)
    path = bundle_path(lang)
    if not os.path.exists(path):
        raise ContentIntegrityError(f"Content bundle for '{lang}' not found at {path}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ContentIntegrityError(f"Content bundle {path} is not valid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ContentIntegrityError(f"Content bundle {path} must be a mapping")
    missing = [s for s in REQUIRED_SECTIONS if not isinstance(data.get(s), (dict, list))]
    if missing:
        raise ContentIntegrityError(f"Content bundle {path} is missing sections: {', '.join(missing)}")
    logger.info("Loaded '%s' content bundle (%d flows)", lang, len(data['flows']))
    return data


def get_case_type_options(language: str) -> List[Dict[str, str]]:
    """Catalog entries ({value, label, description, category}) in display order."""
    return [dict(item) for item in get_translations(language)['case_types']]


def get_labels(language: str) -> Dict[str, str]:
    return dict(get_translations(language)['labels'])


def get_messages(language: str) -> Dict[str, str]:
    return dict(get_translations(language)['messages'])


def content_metadata() -> Dict[str, Any]:
    out: Dict[str, Any] = {'languages': list(SUPPORTED_LANGUAGES), 'content_dir': CONTENT_DIR}
    for lang in SUPPORTED_LANGUAGES:
        try:
            data = get_translations(lang)
            out[lang] = {'case_types': len(data['case_types']), 'flows': sorted(data['flows'])}
        except ContentIntegrityError as e:
            out[lang] = {'error': str(e)}
    return out


__all__ = [
    'SUPPORTED_LANGUAGES', 'DEFAULT_LANGUAGE', 'normalize_language', 'get_translations',
    'get_case_type_options', 'get_labels', 'get_messages', 'content_metadata',
]
