#!/usr/bin/env python3
"""Guard channel translation keys against regressions."""

from __future__ import annotations

import ast
import json
import re
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
COMPONENT_DIR = ROOT / "custom_components" / "sma_inverter"
CONST_PATH = COMPONENT_DIR / "const.py"
TRANSLATIONS_DIR = COMPONENT_DIR / "translations"
STRINGS_PATH = COMPONENT_DIR / "strings.json"

VALID_KEY = re.compile(r"^[a-z0-9-_]+$")

# Error keys the config flow can set
EXPECTED_ERRORS = ("cannot_connect", "invalid_auth", "invalid_host", "unknown")


def extract_assignment_literal(module_ast: ast.Module, assignment_name: str):
    for node in module_ast.body:
        if not isinstance(node, ast.Assign):
            continue
        for target in node.targets:
            if isinstance(target, ast.Name) and target.id == assignment_name:
                return ast.literal_eval(node.value)
    raise ValueError(f"Assignment '{assignment_name}' not found in {CONST_PATH}")


def expected_sensor_keys() -> set[str]:
    module_ast = ast.parse(CONST_PATH.read_text(encoding="utf-8"))
    keys = extract_assignment_literal(module_ast, "CHANNEL_TRANSLATION_KEYS")
    if not isinstance(keys, dict):
        raise TypeError("CHANNEL_TRANSLATION_KEYS must be a dict")
    return set(keys.values())


def check_translation_file(path: Path, expected_keys: set[str]) -> tuple[list[str], set[str]]:
    issues: list[str] = []
    data = json.loads(path.read_text(encoding="utf-8"))
    sensors = data.get("entity", {}).get("sensor")

    if not isinstance(sensors, dict):
        return [f"{path}: entity.sensor is missing or not an object"], set()

    sensor_keys = set(sensors.keys())
    invalid_format = sorted(
        key
        for key in sensor_keys
        if not VALID_KEY.fullmatch(key)
        or key.startswith(("-", "_"))
        or key.endswith(("-", "_"))
    )
    if invalid_format:
        issues.append(f"{path}: invalid key format: {', '.join(invalid_format)}")

    missing = sorted(expected_keys - sensor_keys)
    if missing:
        issues.append(f"{path}: missing expected sensor keys: {', '.join(missing)}")

    unnamed = sorted(key for key, value in sensors.items() if not (value or {}).get("name"))
    if unnamed:
        issues.append(f"{path}: sensor keys without a name: {', '.join(unnamed)}")

    errors = data.get("config", {}).get("error", {})
    missing_errors = sorted(key for key in EXPECTED_ERRORS if key not in errors)
    if missing_errors:
        issues.append(f"{path}: missing config errors: {', '.join(missing_errors)}")

    return issues, sensor_keys


def discover_translation_paths() -> list[Path]:
    return sorted(path for path in TRANSLATIONS_DIR.glob("*.json") if path.is_file())


def main() -> int:
    expected = expected_sensor_keys()
    all_issues: list[str] = []
    key_sets: dict[str, set[str]] = {}

    translation_paths = discover_translation_paths()
    if not translation_paths:
        print(f"Translation key guard failed: no translation files found in {TRANSLATIONS_DIR}")
        return 1

    for path in translation_paths:
        issues, sensor_keys = check_translation_file(path, expected)
        all_issues.extend(issues)
        key_sets[path.name] = sensor_keys

    if "en.json" not in key_sets:
        all_issues.append("Missing required baseline translation file: en.json")
        en_keys: set[str] = set()
    else:
        en_keys = key_sets["en.json"]
        en_text = (TRANSLATIONS_DIR / "en.json").read_text(encoding="utf-8")
        if json.loads(en_text) != json.loads(STRINGS_PATH.read_text(encoding="utf-8")):
            all_issues.append("en.json is out of sync with strings.json")

    for filename, keys in key_sets.items():
        if filename == "en.json":
            continue

        missing_in_lang = sorted(en_keys - keys)
        extra_in_lang = sorted(keys - en_keys)
        if missing_in_lang:
            all_issues.append(
                f"{filename} missing keys present in en.json: {', '.join(missing_in_lang)}"
            )
        if extra_in_lang:
            all_issues.append(
                f"{filename} has extra keys not in en.json: {', '.join(extra_in_lang)}"
            )

    if all_issues:
        print("Translation key guard failed:")
        for issue in all_issues:
            print(f" - {issue}")
        return 1

    print(
        f"Translation key guard passed ({len(expected)} expected sensor keys, "
        f"{len(translation_paths)} language file(s))."
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
