from typing import Any, Dict, Set, Union
import json
import os
import re
from pathlib import Path

import yaml
import json5  # type: ignore

from .models import Settings

# Supports ${NAME} and ${env:NAME}. '$${NAME}' escapes a literal '${NAME}'.
VAR_PATTERN = re.compile(
    r"(?<!\$)\$\{([A-Za-z_][A-Za-z0-9_]*(?::[A-Za-z_][A-Za-z0-9_]*)?)\}"
)

VARIABLES_KEY = "variables"


def _collect_variables(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Read the top-level variables section. Accepts a mapping, a list of
    one-key mappings, or a list of {key: ..., value: ...} entries.
    """
    declared = doc.get(VARIABLES_KEY)
    if isinstance(declared, dict):
        return {k: v for k, v in declared.items() if isinstance(k, str)}

    out: Dict[str, Any] = {}
    if isinstance(declared, list):
        for item in declared:
            if not isinstance(item, dict):
                continue
            if isinstance(item.get("key"), str) and "value" in item:
                out[item["key"]] = item["value"]
                continue
            out.update({k: v for k, v in item.items() if isinstance(k, str)})
    return out


def _lookup(name: str, vars_map: Dict[str, Any]) -> tuple[bool, Any]:
    """(found, value) for NAME from vars_map or env:NAME from the environment."""
    if name.startswith("env:"):
        val = os.getenv(name[4:]) if name[4:] else None
        return (val is not None), val
    if name in vars_map:
        return True, vars_map[name]
    return False, None


def _resolve_variables(vars_map: Dict[str, Any]) -> Dict[str, Any]:
    """
    Resolve variables whose whole value is a reference to another variable.
    Unknown references stay as placeholders; cycles raise ValueError.
    """
    resolved: Dict[str, Any] = {}
    stack: Set[str] = set()

    def resolve(name: str) -> Any:
        if name in resolved:
            return resolved[name]
        if name in stack:
            raise ValueError(f"Detected variable resolution cycle at '{name}'")
        stack.add(name)
        val = vars_map.get(name)
        m = VAR_PATTERN.fullmatch(val) if isinstance(val, str) else None
        if m is not None:
            ref = m.group(1)
            if ref in vars_map:
                val = resolve(ref)
            else:
                found, ref_val = _lookup(ref, vars_map)
                if found:
                    val = ref_val
        stack.discard(name)
        resolved[name] = val
        return val

    for key in vars_map:
        resolve(key)
    return resolved


def _stringify(val: Any) -> str:
    if val is None:
        return ""
    if isinstance(val, (dict, list)):
        return json.dumps(val, ensure_ascii=False)
    return str(val)


def _interpolate(s: str, vars_map: Dict[str, Any]) -> str:
    def repl(m: re.Match) -> str:
        found, val = _lookup(m.group(1), vars_map)
        return _stringify(val) if found else m.group(0)

    return VAR_PATTERN.sub(repl, s).replace("$${", "${")


def _apply_variables(obj: Any, vars_map: Dict[str, Any]) -> Any:
    if isinstance(obj, dict):
        return {k: _apply_variables(v, vars_map) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_apply_variables(v, vars_map) for v in obj]
    if not isinstance(obj, str):
        return obj
    # A value that is exactly one placeholder keeps the variable's type.
    m = VAR_PATTERN.fullmatch(obj)
    if m is not None:
        found, val = _lookup(m.group(1), vars_map)
        return val if found else obj
    return _interpolate(obj, vars_map)


def _load_raw_file(path: Path) -> Any:
    ext = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if ext in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    elif ext in {".json5", ".jsonc", ".json"}:
        data = json5.loads(text)
    else:
        raise ValueError(f"Unsupported config file extension: {ext}")
    return {} if data is None else data


def load_settings(path: Union[str, Path]) -> Settings:
    data = _load_raw_file(Path(path))
    if not isinstance(data, dict):
        raise ValueError("Root configuration must be a mapping/object")

    vars_map = _resolve_variables(_collect_variables(data))
    body = {k: v for k, v in data.items() if k != VARIABLES_KEY}
    return Settings.model_validate(_apply_variables(body, vars_map))
