from pathlib import Path

import pytest
from pydantic import ValidationError

from vodiff.diff import BuiltinDiffExecutor, BuiltinMerge, GitDiffExecutor, GitMergeExecutor
from vodiff.settings import (
    ExecutorSettings,
    LogLevel,
    Settings,
    build_executor,
    build_merge,
    load_settings,
)


def _write_tmp(tmp_path: Path, text: str, name: str = "config.yaml") -> Path:
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_defaults():
    settings = Settings()

    assert settings.executor.backend == "git"
    assert settings.executor.context_lines == 1
    assert settings.executor.empty_line_token == "<l>"
    assert settings.session.max_retries == 5
    assert settings.session.retry_delay_s == 0.1
    assert settings.session.min_separation == 3
    assert settings.logging is None


def test_yaml_with_variables(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("VODIFF_TEST_GIT", "/opt/git/bin/git")
    cfg = """
variables:
  RETRIES: 7
  SEPARATION: ${RETRIES}
executor:
  git_binary: ${env:VODIFF_TEST_GIT}
  empty_line_token: "<${NAME_MISSING}>"
session:
  max_retries: ${RETRIES}
  min_separation: ${SEPARATION}
logging:
  default_level: debug
  enabled_loggers:
    asyncio: disabled
"""
    settings = load_settings(_write_tmp(tmp_path, cfg))

    assert settings.executor.git_binary == "/opt/git/bin/git"
    assert settings.executor.empty_line_token == "<${NAME_MISSING}>"
    assert settings.session.max_retries == 7
    assert settings.session.min_separation == 7
    assert settings.logging.default_level == LogLevel.debug
    assert settings.logging.enabled_loggers == {"asyncio": LogLevel.disabled}


def test_interpolation_and_escape(tmp_path: Path) -> None:
    cfg = """
variables:
  ROOT: /var/tmp
executor:
  tmp_dir: "${ROOT}/vodiff"
  empty_line_token: "$${ROOT}"
"""
    settings = load_settings(str(_write_tmp(tmp_path, cfg)))

    assert settings.executor.tmp_dir == Path("/var/tmp/vodiff")
    assert settings.executor.empty_line_token == "${ROOT}"


def test_json5_config(tmp_path: Path) -> None:
    cfg = """
// comments are fine
{
  executor: { backend: "builtin", context_lines: 2, },
  session: { retry_delay_s: 0.5 },
}
"""
    settings = load_settings(_write_tmp(tmp_path, cfg, "config.json5"))

    assert settings.executor.backend == "builtin"
    assert settings.executor.context_lines == 2
    assert settings.session.retry_delay_s == 0.5


def test_empty_file_gives_defaults(tmp_path: Path) -> None:
    assert load_settings(_write_tmp(tmp_path, "")) == Settings()


def test_unsupported_extension(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        load_settings(_write_tmp(tmp_path, "a = 1", "config.toml"))


def test_root_must_be_mapping(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        load_settings(_write_tmp(tmp_path, "- a\n- b\n"))


def test_variable_cycle(tmp_path: Path) -> None:
    cfg = """
variables:
  A: ${B}
  B: ${A}
"""
    with pytest.raises(ValueError):
        load_settings(_write_tmp(tmp_path, cfg))


def test_validation_errors(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        load_settings(_write_tmp(tmp_path, "executor:\n  backend: svn\n"))
    with pytest.raises(ValidationError):
        ExecutorSettings(empty_line_token="")
    with pytest.raises(ValidationError):
        ExecutorSettings(context_lines=-1)


def test_builders():
    builtin = ExecutorSettings(backend="builtin", context_lines=3)
    git = ExecutorSettings(git_binary="/usr/bin/git", context_lines=2)

    assert isinstance(build_executor(builtin), BuiltinDiffExecutor)
    assert build_executor(builtin).context_lines == 3
    assert isinstance(build_merge(builtin), BuiltinMerge)

    executor = build_executor(git)
    assert isinstance(executor, GitDiffExecutor)
    assert executor.git_binary == "/usr/bin/git"
    assert executor.context_lines == 2
    assert isinstance(build_merge(git), GitMergeExecutor)
