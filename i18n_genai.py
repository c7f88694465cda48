#!/usr/bin/env python3
"""
i18n-genai - Translation key extraction and AI-assisted locale filling
Scans source code for t("...") / i18n.t("...") calls, keeps a registry of keys,
and asks a generative language API to fill in the keys each locale is missing.
Features: batch requests, resumable runs, legacy locale file migration
"""

import argparse
import json
import math
import os
import re
import sys
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator

import requests
import yaml
from dotenv import find_dotenv, load_dotenv
from rich.console import Console

__version__ = "0.3.0"

# Configuration
CONFIG_FILE_NAMES = ("i18n-genai.config.yaml", "i18n-genai.config.yml", "i18n-genai.config.json")
MAX_KEYS_PER_REQUEST = 50
REQUEST_DELAY = 5.0
DEFAULT_MATCHES = [".ts", ".tsx", ".js", ".jsx"]
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
OPENAI_COMPATIBLE_URL = "http://localhost:1234/v1/chat/completions"

# Locale files are written as {"translation": {...}}; "translations" is an older spelling
ENVELOPE_FIELD = "translation"
LEGACY_ENVELOPE_FIELD = "translations"

console = Console(highlight=False, emoji=False)


def info(message: str):
    console.print(message, markup=False, soft_wrap=True)


def warn(message: str):
    console.print(f"⚠ {message}", style="yellow", markup=False, soft_wrap=True)


def error(message: str):
    console.print(f"❌ {message}", style="red", markup=False, soft_wrap=True)


# ============== Errors ==============
class I18nGenAIError(Exception):
    """Base class for errors that stop a command."""


class ConfigError(I18nGenAIError):
    """Invalid configuration or configuration file."""


class UnknownLocaleError(ConfigError):
    """Requested locale code is not configured."""

    def __init__(self, code: str, valid_codes: list[str]):
        self.code = code
        self.valid_codes = valid_codes
        super().__init__(f"Unavailable locale {code!r}. Use one of {', '.join(valid_codes)}")


class ExtractionError(I18nGenAIError):
    """A source file or folder could not be read during extraction."""


class StoreError(I18nGenAIError):
    """The key registry or a locale file exists but cannot be read or written."""


class ProviderError(I18nGenAIError):
    """The translation provider is misconfigured or answered without usable text."""


# ============== Configuration ==============
@dataclass(frozen=True)
class Locale:
    code: str
    label: str


def _default_locales() -> list[Locale]:
    return [Locale("en", "English"), Locale("fr", "French")]


@dataclass
class Config:
    """Effective settings passed to every command."""
    locale_folder: str = "locales"
    source_folder: str = "src"
    default_locale: str = "en"
    skip_default_locale: bool = False
    storage_translations_file: str = "translations"
    locales: list[Locale] = field(default_factory=_default_locales)
    matches: list[str] = field(default_factory=lambda: list(DEFAULT_MATCHES))
    max_keys_per_request: int = MAX_KEYS_PER_REQUEST
    provider: str = "gemini"
    provider_api_key: str = field(default_factory=lambda: os.environ.get("GEMINI_API_KEY", ""))
    provider_model: str = field(default_factory=lambda: os.environ.get("GEMINI_API_MODEL", DEFAULT_GEMINI_MODEL))
    provider_url: str = ""
    request_delay: float = REQUEST_DELAY
    root: Path = field(default_factory=Path.cwd)

    @property
    def locale_dir(self) -> Path:
        return self.root / self.locale_folder

    @property
    def source_dir(self) -> Path:
        return self.root / self.source_folder

    def find_locale(self, code: str) -> Locale:
        for locale in self.locales:
            if locale.code == code:
                return locale
        raise UnknownLocaleError(code, [l.code for l in self.locales])

    def to_dict(self) -> dict[str, Any]:
        """Serializable view with the API key masked."""
        return {
            "localeFolder": self.locale_folder,
            "sourceFolder": self.source_folder,
            "defaultLocale": self.default_locale,
            "skipDefaultLocale": self.skip_default_locale,
            "storageTranslationsFile": self.storage_translations_file,
            "locales": [{"code": l.code, "label": l.label} for l in self.locales],
            "matches": list(self.matches),
            "maxKeysPerRequest": self.max_keys_per_request,
            "provider": self.provider,
            "providerApiKey": "***" if self.provider_api_key else "",
            "providerModel": self.provider_model,
            "providerUrl": self.provider_url,
            "requestDelay": self.request_delay,
        }

    @classmethod
    def from_mapping(cls, data: dict[str, Any], root: Path | None = None) -> "Config":
        """Build a Config from camelCase settings, validating each value."""
        config = cls(root=Path(root) if root is not None else Path.cwd())
        for name, value in data.items():
            attr = _CONFIG_FIELDS.get(name)
            if attr is None:
                warn(f"Ignoring unknown configuration key {name!r}")
                continue
            setattr(config, attr, _validate_field(name, value))
        if config.provider not in PROVIDERS:
            raise ConfigError(f"Unknown provider {config.provider!r}. Use one of {', '.join(PROVIDERS)}")
        return config


_CONFIG_FIELDS = {
    "localeFolder": "locale_folder",
    "sourceFolder": "source_folder",
    "defaultLocale": "default_locale",
    "skipDefaultLocale": "skip_default_locale",
    "storageTranslationsFile": "storage_translations_file",
    "locales": "locales",
    "matches": "matches",
    "maxKeysPerRequest": "max_keys_per_request",
    "provider": "provider",
    "providerApiKey": "provider_api_key",
    "providerModel": "provider_model",
    "providerUrl": "provider_url",
    "requestDelay": "request_delay",
}


def _validate_field(name: str, value: Any) -> Any:
    if name == "locales":
        if not isinstance(value, list) or not value:
            raise ConfigError("'locales' must be a non-empty list of {code, label} entries")
        locales = []
        for entry in value:
            if not isinstance(entry, dict) or not isinstance(entry.get("code"), str) or not entry["code"]:
                raise ConfigError(f"Invalid locale entry: {entry!r}")
            label = entry.get("label") or entry["code"]
            locales.append(Locale(entry["code"], str(label)))
        return locales
    if name == "matches":
        if not isinstance(value, list) or not all(isinstance(ext, str) and ext for ext in value):
            raise ConfigError("'matches' must be a list of file extensions")
        return [ext if ext.startswith(".") else f".{ext}" for ext in value]
    if name == "maxKeysPerRequest":
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ConfigError(f"'maxKeysPerRequest' must be a positive integer, got {value!r}")
        return value
    if name == "requestDelay":
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            raise ConfigError(f"'requestDelay' must be a non-negative number, got {value!r}")
        return float(value)
    if name == "skipDefaultLocale":
        if not isinstance(value, bool):
            raise ConfigError(f"'skipDefaultLocale' must be true or false, got {value!r}")
        return value
    if not isinstance(value, str):
        raise ConfigError(f"'{name}' must be a string, got {value!r}")
    return value


def find_config_file(root: Path) -> Path | None:
    for name in CONFIG_FILE_NAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def load_config(root: str | Path | None = None, path: str | Path | None = None) -> Config:
    """Merge the user configuration file, if any, over the defaults."""
    root = Path(root) if root is not None else Path.cwd()
    if path is not None:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigError(f"Configuration file not found: {config_path}")
    else:
        config_path = find_config_file(root)
        if config_path is None:
            return Config(root=root)

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load configuration {config_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration {config_path} must contain a mapping")
    return Config.from_mapping(data, root=root)


# ============== Key Extractor ==============
# t("key") or i18n.t('key', {...}); the literal ends at the first unescaped matching quote
KEY_CALL_PATTERN = re.compile(
    r"""(?:(?:(?<![\w$])|(?<=\.))i18n\.|(?<![\w$.]))t\(\s*"""
    r"""(?P<quote>['"`])(?P<key>(?:\\.|(?!(?P=quote))[^\\])*)(?P=quote)\s*[,)]""",
    re.DOTALL,
)
_ESCAPE_SEQUENCE = re.compile(
    r"\\(?:u\{(?P<code_point>[0-9a-fA-F]{1,6})\}|u(?P<unicode>[0-9a-fA-F]{4})|x(?P<hex>[0-9a-fA-F]{2})|(?P<char>.))",
    re.DOTALL,
)
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "\n": ""}


def _decode_escape(match: re.Match) -> str:
    digits = match.group("code_point") or match.group("unicode") or match.group("hex")
    if digits:
        value = int(digits, 16)
        return chr(value) if value <= sys.maxunicode else match.group(0)
    char = match.group("char")
    return _ESCAPES.get(char, char)


def _unescape(literal: str) -> str:
    text = _ESCAPE_SEQUENCE.sub(_decode_escape, literal)
    # join \uD83D\uDE00 style surrogate pairs
    return text.encode("utf-16", "surrogatepass").decode("utf-16", "replace")


def extract_keys_from_text(text: str) -> list[str]:
    """Return every key literal referenced in text, in order, duplicates included."""
    keys = []
    for match in KEY_CALL_PATTERN.finditer(text):
        raw = match.group("key")
        # template literals with interpolation are not static keys
        if match.group("quote") == "`" and "${" in raw:
            continue
        keys.append(_unescape(raw))
    return keys


def extract_keys_from_file(path: str | Path) -> list[str]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ExtractionError(f"Could not read {path}: {e}") from e
    return extract_keys_from_text(content)


def _sorted_entries(directory: str) -> list[os.DirEntry]:
    try:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda entry: entry.name)
    except OSError as e:
        raise ExtractionError(f"Could not list {directory}: {e}") from e


def iter_source_files(root: str | Path, extensions: Iterable[str] | None = None) -> Iterator[Path]:
    """Yield files under root depth-first, optionally filtered by extension.

    Symlinked directories are not entered, and symlinked files are only
    yielded when they resolve inside root.
    """
    root = Path(root)
    if not root.is_dir():
        raise ExtractionError(f"Source folder not found: {root}")
    resolved_root = root.resolve()
    wanted = set(extensions) if extensions else None

    stack = [iter(_sorted_entries(str(root)))]
    while stack:
        entry = next(stack[-1], None)
        if entry is None:
            stack.pop()
            continue
        if entry.is_symlink():
            if entry.is_dir() or not Path(entry.path).resolve().is_relative_to(resolved_root):
                continue
        if entry.is_dir():
            stack.append(iter(_sorted_entries(entry.path)))
        elif entry.is_file():
            path = Path(entry.path)
            if wanted is None or path.suffix in wanted:
                yield path


def extract_keys_from_directory(root: str | Path, extensions: Iterable[str] | None = None) -> list[str]:
    """Distinct keys referenced under root, in first-seen order."""
    keys: dict[str, None] = {}
    for path in iter_source_files(root, extensions):
        for key in extract_keys_from_file(path):
            keys.setdefault(key, None)
    return list(keys)


# ============== Translation Store ==============
class LocaleFileLayout(Enum):
    """Shape a locale file had on disk when it was loaded."""
    MISSING = "missing"
    CORRUPT = "corrupt"
    LEGACY = "legacy"                    # bare {key: value}
    PLURAL_ENVELOPE = "plural-envelope"  # {"translations": {...}}
    ENVELOPED = "enveloped"              # {"translation": {...}}


@dataclass
class LocaleFile:
    """A locale file normalized to its string translations.

    `entries` keeps the whole mapping as loaded (nested plural forms and
    other non-string values included) and `metadata` the top-level fields
    beside the envelope, so writing back never loses them.
    """
    path: Path
    translations: dict[str, str]
    layout: LocaleFileLayout
    entries: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_document(cls, path: Path, data: Any) -> "LocaleFile":
        if not isinstance(data, dict):
            return cls(path, {}, LocaleFileLayout.CORRUPT)
        if isinstance(data.get(ENVELOPE_FIELD), dict):
            envelope, layout = ENVELOPE_FIELD, LocaleFileLayout.ENVELOPED
        elif isinstance(data.get(LEGACY_ENVELOPE_FIELD), dict):
            envelope, layout = LEGACY_ENVELOPE_FIELD, LocaleFileLayout.PLURAL_ENVELOPE
        else:
            envelope, layout = None, LocaleFileLayout.LEGACY

        if envelope is None:
            mapping, metadata = data, {}
        else:
            mapping = data[envelope]
            metadata = {k: v for k, v in data.items() if k != envelope}
        translations = {k: v for k, v in mapping.items() if isinstance(v, str)}
        return cls(path, translations, layout, entries=dict(mapping), metadata=metadata)

    def to_document(self) -> dict[str, Any]:
        document = dict(self.metadata)
        document[ENVELOPE_FIELD] = {**self.entries, **self.translations}
        return document


@dataclass
class TranslationDiff:
    untranslated_keys: list[str]
    translated_count: int
    total_count: int
    percentage: int


def completion_percentage(translated: int, total: int) -> int:
    if total <= 0:
        return 0
    # half-up rounding, not banker's rounding
    return math.floor(translated / total * 100 + 0.5)


def _write_json(path: Path, data: Any):
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
            f.write("\n")
    except OSError as e:
        raise StoreError(f"Could not write {path}: {e}") from e


class TranslationStore:
    """Registry and per-locale translation files under the locale folder.

    Single writer only: nothing here locks the files against another
    process working on the same folder.
    """

    def __init__(self, config: Config):
        self.config = config

    @property
    def registry_path(self) -> Path:
        return self.config.locale_dir / f"{self.config.storage_translations_file}.json"

    def locale_path(self, code: str) -> Path:
        return self.config.locale_dir / f"{code}.json"

    def load_registry(self) -> dict[str, str]:
        path = self.registry_path
        if not path.exists():
            return {}
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            warn(f"Could not parse key registry {path}, treating it as empty: {e}")
            return {}
        except OSError as e:
            raise StoreError(f"Could not read key registry {path}: {e}") from e
        if not isinstance(data, dict):
            warn(f"Key registry {path} is not a JSON object, treating it as empty")
            return {}
        return {key: "" for key in data}

    def load_locale(self, code: str) -> LocaleFile:
        path = self.locale_path(code)
        if not path.exists():
            return LocaleFile(path, {}, LocaleFileLayout.MISSING)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError):
            data = None
        except OSError as e:
            raise StoreError(f"Could not read translations file for locale {code!r} ({path}): {e}") from e
        locale_file = LocaleFile.from_document(path, data)
        if locale_file.layout is LocaleFileLayout.CORRUPT:
            warn(f"Could not parse translations file for locale {code!r} ({path}), treating it as empty")
        return locale_file

    def register(self, keys: Iterable[str]) -> int:
        """Add unknown keys to the registry; returns how many were new."""
        registry = self.load_registry()
        added = 0
        for key in keys:
            if key not in registry:
                registry[key] = ""
                added += 1
        _write_json(self.registry_path, registry)
        info(f"Saved {added} new keys to {self.registry_path.name}")
        return added

    def diff(self, locale: Locale) -> TranslationDiff:
        registry = self.load_registry()
        translations = self.load_locale(locale.code).translations
        untranslated = [key for key in registry if not translations.get(key)]
        total = len(registry)
        translated = total - len(untranslated)
        return TranslationDiff(
            untranslated_keys=untranslated,
            translated_count=translated,
            total_count=total,
            percentage=completion_percentage(translated, total),
        )

    def merge(self, locale: Locale, translations: dict[str, str]):
        """Write translations over the locale file, keeping every other entry."""
        locale_file = self.load_locale(locale.code)
        if locale_file.layout is LocaleFileLayout.CORRUPT:
            warn(f"Overwriting unreadable {locale_file.path.name} with the new translations")
        elif locale_file.layout in (LocaleFileLayout.LEGACY, LocaleFileLayout.PLURAL_ENVELOPE):
            info(f"Migrating {locale_file.path.name} to the '{ENVELOPE_FIELD}' envelope")

        locale_file.translations.update(translations)
        info(f"Saving {len(translations)} translations to {locale_file.path}")
        _write_json(locale_file.path, locale_file.to_document())


# ============== Providers ==============
class TranslationProvider(ABC):
    """Something that turns a prompt into generated text."""

    name = "provider"

    @abstractmethod
    def generate(self, prompt: str) -> str:
        pass


class GeminiProvider(TranslationProvider):
    """Google Generative Language REST API."""

    def __init__(self, api_key: str, model: str = DEFAULT_GEMINI_MODEL, timeout: float = 60):
        if not api_key:
            raise ProviderError("No API key configured. Set GEMINI_API_KEY or providerApiKey")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.name = model

    def generate(self, prompt: str) -> str:
        resp = requests.post(
            GEMINI_API_URL.format(model=self.model),
            headers={"x-goog-api-key": self.api_key},
            json={"contents": [{"parts": [{"text": prompt}]}]},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        candidates = resp.json().get("candidates") or []
        if not candidates:
            raise ProviderError("Provider returned no candidates")
        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(part.get("text", "") for part in parts)


class OpenAICompatibleProvider(TranslationProvider):
    """Chat-completions endpoint such as a local LM Studio server."""

    def __init__(self, url: str = OPENAI_COMPATIBLE_URL, model: str = "local-model",
                 api_key: str = "", timeout: float = 60):
        self.url = url
        self.model = model
        self.api_key = api_key
        self.timeout = timeout
        self.name = model

    def generate(self, prompt: str) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": "You are a professional software localization translator."},
                {"role": "user", "content": prompt}
            ],
            "temperature": 0.3,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        resp = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()["choices"][0]["message"]["content"]


PROVIDERS = ("gemini", "openai")


def get_provider(config: Config) -> TranslationProvider:
    if config.provider == "gemini":
        return GeminiProvider(config.provider_api_key, config.provider_model)
    if config.provider == "openai":
        return OpenAICompatibleProvider(
            url=config.provider_url or OPENAI_COMPATIBLE_URL,
            model=config.provider_model,
            api_key=config.provider_api_key,
        )
    raise ConfigError(f"Unknown provider {config.provider!r}. Use one of {', '.join(PROVIDERS)}")


# ============== Batch Translator ==============
def chunk_keys(keys: list[str], size: int) -> list[list[str]]:
    if size <= 0:
        raise ValueError(f"Chunk size must be positive, got {size}")
    return [keys[i:i + size] for i in range(0, len(keys), size)]


def build_prompt(content: dict[str, str], language: str) -> str:
    return f"""Please complete my translation file by adding the {language} version of the keys in this JSON as values.
Keep placeholders like {{name}}, {{count}}, %s and %d unchanged.
Return only the JSON response with no comments, no additional messages, nothing else but the requested JSON.

Here is my JSON:

{json.dumps(content, ensure_ascii=False)}"""


def extract_json_object(text: str) -> str | None:
    """Slice from the first '{' to the last '}', or None if there is no such span."""
    begin = text.find("{")
    end = text.rfind("}")
    if begin == -1 or end == -1 or end < begin:
        return None
    return text[begin:end + 1]


class BatchTranslator:
    """Sends untranslated keys to a provider one chunk at a time."""

    def __init__(self, provider: TranslationProvider, max_keys_per_request: int = MAX_KEYS_PER_REQUEST,
                 delay: float = REQUEST_DELAY, sleep: Callable[[float], None] = time.sleep):
        self.provider = provider
        self.max_keys_per_request = max_keys_per_request
        self.delay = delay
        self.sleep = sleep

    def translate_chunk(self, chunk: list[str], locale: Locale) -> dict[str, str]:
        prompt = build_prompt(dict.fromkeys(chunk, ""), locale.label)
        info(f"Sending request to AI model ({self.provider.name})...")
        response_text = self.provider.generate(prompt) or ""

        payload = extract_json_object(response_text)
        if payload is None:
            raise ProviderError("No JSON object found in the response")
        translated = json.loads(payload)

        requested = set(chunk)
        results = {}
        for key, value in translated.items():
            if key in requested and isinstance(value, str) and value:
                results[key] = value
        dropped = len(translated) - len(results)
        if dropped:
            warn(f"Dropped {dropped} entries that were not requested or not translated")
        return results

    def translate(self, keys: list[str], locale: Locale) -> dict[str, str]:
        """Translate as many keys as the provider manages; failed chunks are skipped."""
        chunks = chunk_keys(keys, self.max_keys_per_request)
        results: dict[str, str] = {}
        info(f"Processing {len(keys)} keys in {len(chunks)} chunks of up to {self.max_keys_per_request} keys each.")

        for i, chunk in enumerate(chunks, 1):
            info(f"Processing chunk {i}/{len(chunks)} with {len(chunk)} keys...")
            try:
                translated = self.translate_chunk(chunk, locale)
            except Exception as e:
                error(f"Error processing chunk {i}: {e}")
            else:
                results.update(translated)
                info(f"Chunk {i} processed successfully, obtained {len(translated)} translations.")

            if i < len(chunks):
                info(f"Pausing for {self.delay:g} seconds to avoid rate limiting...")
                self.sleep(self.delay)

        return results


# ============== Status Reporter ==============
@dataclass
class LocaleStatus:
    locale: Locale
    diff: TranslationDiff | None = None
    error: str | None = None

    def __str__(self) -> str:
        if self.diff is None:
            return f"Something wrong on {self.locale.code}.json: {self.error}"
        return (f"{self.locale.label} ({self.locale.code}): "
                f"{self.diff.translated_count}/{self.diff.total_count} ({self.diff.percentage}%)")


def collect_status(config: Config, store: TranslationStore | None = None) -> list[LocaleStatus]:
    store = store or TranslationStore(config)
    statuses = []
    for locale in config.locales:
        try:
            statuses.append(LocaleStatus(locale, diff=store.diff(locale)))
        except Exception as e:
            statuses.append(LocaleStatus(locale, error=str(e)))
    return statuses


def show_status(config: Config) -> list[LocaleStatus]:
    """Print completion per configured locale."""
    info("\n📊 Translation status by locale:")
    statuses = collect_status(config)
    for status in statuses:
        if status.diff is None:
            warn(str(status))
        else:
            info(str(status))
    return statuses


# ============== Commands ==============
def run_extract(config: Config) -> int:
    """Scan the source folder and register every key found."""
    info("Reading translation keys...")
    keys = extract_keys_from_directory(config.source_dir, config.matches)
    info(f"Found {len(keys)} translation keys")
    info(f"Writing keys to {config.storage_translations_file}.json")
    added = TranslationStore(config).register(keys)
    info("✅ Done! Keys saved successfully")
    return added


def translate_locale(config: Config, code: str, provider: TranslationProvider | None = None,
                     sleep: Callable[[float], None] = time.sleep) -> dict[str, str]:
    """Fill the keys a locale is missing and persist whatever came back."""
    locale = config.find_locale(code)
    info(f"🌐 Translating to {locale.label} ({locale.code})")

    store = TranslationStore(config)
    untranslated = store.diff(locale).untranslated_keys
    if not untranslated:
        info("All keys are already translated for this locale. Nothing to do.")
        return {}
    info(f"Found {len(untranslated)} untranslated keys")

    translator = BatchTranslator(
        provider or get_provider(config),
        max_keys_per_request=config.max_keys_per_request,
        delay=config.request_delay,
        sleep=sleep,
    )
    info("Starting translation process...")
    translated = translator.translate(untranslated, locale)
    if not translated:
        warn("No translations were generated")
        return {}

    store.merge(locale, translated)
    info(f"✅ {len(translated)} strings translated")
    return translated


def translate_all(config: Config, provider: TranslationProvider | None = None,
                  sleep: Callable[[float], None] = time.sleep) -> dict[str, int]:
    """Run translate_locale for every configured locale; returns counts per code."""
    counts = {}
    for locale in config.locales:
        if locale.code == config.default_locale and config.skip_default_locale:
            continue
        counts[locale.code] = len(translate_locale(config, locale.code, provider, sleep))
        info("")
    return counts


def show_config(config: Config):
    info(json.dumps({"config": config.to_dict()}, ensure_ascii=False, indent=2))


def write_config_template(config: Config, path: str | Path) -> Path:
    path = Path(path)
    if path.exists():
        raise ConfigError(f"File {path} already exists. Aborting to prevent overwrite.")
    template = {
        "defaultLocale": config.default_locale,
        "localeFolder": config.locale_folder,
        "sourceFolder": config.source_folder,
        "matches": list(config.matches),
        "locales": [{"code": l.code, "label": l.label} for l in config.locales],
    }
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(template, f, allow_unicode=True, sort_keys=False)
    info(f"✅ Configuration template written to {path}")
    return path


# ============== CLI ==============
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="i18n-genai",
        description="Extract translation keys and fill missing locales with a generative AI model",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-c", "--config", help="Configuration file (default: i18n-genai.config.yaml in the current directory)")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("extract", help="Extract translation keys from source files into the key registry")
    sub.add_parser("status", help="Show translation status for all locales")
    translate = sub.add_parser("translate", help="Generate translations for one locale")
    translate.add_argument("locale", help="Locale code, e.g. fr")
    sub.add_parser("translate-all", help="Generate translations for all configured locales")
    sub.add_parser("config", help="Display the effective configuration")
    custom = sub.add_parser("custom", help="Write a configuration template to customize the tool")
    custom.add_argument("-f", "--file", default=CONFIG_FILE_NAMES[0], help="Path of the template to write")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    load_dotenv(find_dotenv(usecwd=True))

    try:
        config = load_config(path=args.config)
        if args.command == "extract":
            run_extract(config)
        elif args.command == "status":
            show_status(config)
        elif args.command == "translate":
            translate_locale(config, args.locale)
        elif args.command == "translate-all":
            translate_all(config)
        elif args.command == "config":
            show_config(config)
        elif args.command == "custom":
            write_config_template(config, args.file)
    except I18nGenAIError as e:
        error(str(e))
        return 1
    except KeyboardInterrupt:
        warn("Interrupted! Untranslated keys are kept, run again to resume.")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
