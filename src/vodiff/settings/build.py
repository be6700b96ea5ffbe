from vodiff.diff.executor import (
    BuiltinDiffExecutor,
    DiffExecutor,
    GitDiffExecutor,
    GitMergeExecutor,
    ThreeWayMerge,
)
from vodiff.diff.merge3 import BuiltinMerge
from vodiff.proc import EnvPolicy

from .models import ExecutorSettings


def _env_policy(settings: ExecutorSettings) -> EnvPolicy:
    env = settings.env
    return EnvPolicy(
        inherit_parent=env.inherit_parent,
        allowlist=env.allowlist,
        denylist=env.denylist,
        defaults=dict(env.defaults),
    )


def build_executor(settings: ExecutorSettings) -> DiffExecutor:
    if settings.backend == "builtin":
        return BuiltinDiffExecutor(context_lines=settings.context_lines)
    return GitDiffExecutor(
        git_binary=settings.git_binary,
        context_lines=settings.context_lines,
        empty_line_token=settings.empty_line_token,
        tmp_dir=settings.tmp_dir,
        env_policy=_env_policy(settings),
    )


def build_merge(settings: ExecutorSettings) -> ThreeWayMerge:
    if settings.backend == "builtin":
        return BuiltinMerge()
    return GitMergeExecutor(
        git_binary=settings.git_binary,
        tmp_dir=settings.tmp_dir,
        env_policy=_env_policy(settings),
    )
