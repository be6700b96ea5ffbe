from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable, Hashable
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union
from uuid import UUID

from vodiff.diff.executor import DiffExecutor, ThreeWayMerge
from vodiff.diff.grouping import DEFAULT_MIN_SEPARATION, changed_sections, slice_lines
from vodiff.diff.models import DiffGroup, LineChange, LineRange
from vodiff.diff.unified import parse_unified_diff
from vodiff.drift import ContentReader, FileSystemContentReader, MergeFn, has_drifted, rebase
from vodiff.errors import DiffGenerationError, DiffToolError, DiffToolMissingError
from vodiff.logger import logger
from vodiff.patch import apply_patches, parse_patches
from vodiff.patch.models import Patch
from vodiff.state import DiffResult, DiffState, DiffStatus

TargetId = Hashable
DiffChangedListener = Callable[[TargetId], None]
_Fingerprint = Tuple[str, str, str]

DEFAULT_MAX_RETRIES = 5
DEFAULT_RETRY_DELAY_S = 0.1


def _fingerprint(result: DiffResult) -> _Fingerprint:
    return (result.original, result.raw_diff, result.updated)


@dataclass
class _Slot:
    state: DiffState = field(default_factory=DiffState.empty)
    status: DiffStatus = DiffStatus.EMPTY
    has_state: bool = False
    # Request that produced `state`, as given by the caller
    fingerprint: Optional[_Fingerprint] = None
    # Latest prepared request, possibly still in flight
    pending: Optional[DiffResult] = None


@dataclass
class _Run:
    task: "asyncio.Task[DiffState]"
    fingerprint: _Fingerprint
    generation: int


class DiffSession:
    """
    Owns one DiffState per target id and drives parse, apply, diff and
    grouping for it.

    Processing is single flight per target: an identical request joins the
    run in flight, a different one cancels it and takes its place. Results
    of a superseded run are never written.
    """

    def __init__(
        self,
        *,
        executor: DiffExecutor,
        merge: Optional[Union[ThreeWayMerge, MergeFn]] = None,
        content_reader: Optional[ContentReader] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay_s: float = DEFAULT_RETRY_DELAY_S,
        min_separation: int = DEFAULT_MIN_SEPARATION,
    ) -> None:
        self.executor = executor
        self.merge = merge
        self.content_reader: ContentReader = content_reader or FileSystemContentReader()
        self.max_retries = max_retries
        self.retry_delay_s = retry_delay_s
        self.min_separation = min_separation

        self._lock = threading.Lock()
        self._slots: Dict[TargetId, _Slot] = {}
        self._inflight: Dict[TargetId, _Run] = {}
        self._generation = 0
        self._listeners: List[DiffChangedListener] = []

    @classmethod
    def from_settings(
        cls,
        settings,
        *,
        executor: Optional[DiffExecutor] = None,
        merge: Optional[Union[ThreeWayMerge, MergeFn]] = None,
        content_reader: Optional[ContentReader] = None,
    ) -> "DiffSession":
        from vodiff.settings import build_executor, build_merge

        return cls(
            executor=executor or build_executor(settings.executor),
            merge=merge or build_merge(settings.executor),
            content_reader=content_reader,
            max_retries=settings.session.max_retries,
            retry_delay_s=settings.session.retry_delay_s,
            min_separation=settings.session.min_separation,
        )

    # Listeners

    def subscribe(self, listener: DiffChangedListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, target_id: TargetId) -> None:
        for listener in list(self._listeners):
            try:
                listener(target_id)
            except Exception as exc:
                logger.exception("DiffSession listener exception", exc=exc)

    # Snapshots

    def get_state(self, target_id: TargetId) -> DiffState:
        with self._lock:
            slot = self._slots.get(target_id)
            return slot.state if slot is not None else DiffState.empty()

    def get_status(self, target_id: TargetId) -> DiffStatus:
        with self._lock:
            slot = self._slots.get(target_id)
            return slot.status if slot is not None else DiffStatus.EMPTY

    @property
    def state_count(self) -> int:
        with self._lock:
            return len(self._slots)

    def mark_group_applied(self, target_id: TargetId, group_id: UUID) -> DiffState:
        with self._lock:
            slot = self._slots.get(target_id)
            if slot is None or not slot.has_state:
                raise KeyError(f"No diff state for {target_id!r}")
            if slot.state.get_group(group_id) is None:
                raise KeyError(f"Unknown group {group_id!r} for {target_id!r}")
            if group_id in slot.state.applied_group_ids:
                return slot.state
            slot.state = slot.state.with_applied(group_id)
            state = slot.state
        self._notify(target_id)
        return state

    def remove_state(self, target_id: TargetId) -> None:
        with self._lock:
            slot = self._slots.pop(target_id, None)
            run = self._inflight.pop(target_id, None)
        if run is not None and not run.task.done():
            run.task.cancel()
        if slot is not None:
            self._notify(target_id)

    def clear_all(self) -> None:
        with self._lock:
            ids = list(self._slots.keys())
        for target_id in ids:
            self.remove_state(target_id)

    # Processing

    def _prepare(self, result: DiffResult) -> Tuple[DiffResult, List[Patch]]:
        patches = parse_patches(result.raw_diff) if result.raw_diff.strip() else []
        update = {}
        if not result.storage:
            update["storage"] = result.original
        if not result.updated:
            update["updated"] = apply_patches(patches, result.original)
        return result.model_copy(update=update), patches

    async def process_diff(self, target_id: TargetId, result: DiffResult) -> DiffState:
        """
        Produce the DiffState for target_id from result.

        Repeating the request that produced the current state returns it
        without touching the executor. Raises DiffGenerationError once
        retries run out; the previous state is kept in that case.
        """
        fp = _fingerprint(result)
        with self._lock:
            slot = self._slots.get(target_id)
            if (
                slot is not None
                and slot.status == DiffStatus.READY
                and slot.fingerprint == fp
            ):
                return slot.state

            run = self._inflight.get(target_id)
            if run is not None and run.fingerprint == fp and not run.task.done():
                task = run.task
            else:
                # May raise NotAPatchError; nothing has changed yet.
                prepared, patches = self._prepare(result)
                if run is not None and not run.task.done():
                    logger.debug("Superseding diff run", target_id=str(target_id))
                    run.task.cancel()
                self._generation += 1
                generation = self._generation
                if slot is None:
                    slot = self._slots[target_id] = _Slot()
                slot.status = DiffStatus.DIFFING
                slot.pending = prepared
                task = asyncio.create_task(
                    self._run(target_id, prepared, patches, fp, generation)
                )
                self._inflight[target_id] = _Run(task, fp, generation)

        return await self._follow(target_id, task)

    process = process_diff

    async def _follow(self, target_id: TargetId, task: "asyncio.Task[DiffState]") -> DiffState:
        # Keep waiting on whichever run replaced ours.
        while True:
            try:
                return await asyncio.shield(task)
            except asyncio.CancelledError:
                current = asyncio.current_task()
                if current is not None and current.cancelling():
                    raise
                with self._lock:
                    run = self._inflight.get(target_id)
                if run is None or run.task is task:
                    raise
                task = run.task

    async def stream(self, target_id: TargetId, patch_text: str) -> Optional[DiffState]:
        """Apply newly streamed patches onto the working copy and re-process."""
        with self._lock:
            slot = self._slots.get(target_id)
            base = None
            if slot is not None:
                base = slot.pending or (slot.state.result if slot.has_state else None)
        if base is None:
            logger.warning("No diff state to stream into", target_id=str(target_id))
            return None

        patches = parse_patches(patch_text)
        # updated already carries every earlier patch of this target
        storage = apply_patches(patches, base.updated or base.storage or base.original)
        raw_diff = f"{base.raw_diff}\n{patch_text}" if base.raw_diff else patch_text
        update = {"storage": storage, "updated": storage, "raw_diff": raw_diff}
        return await self.process_diff(target_id, base.model_copy(update=update))

    def _is_current(self, target_id: TargetId, generation: int) -> bool:
        run = self._inflight.get(target_id)
        return run is not None and run.generation == generation

    def _set_status(self, target_id: TargetId, generation: int, status: DiffStatus) -> None:
        with self._lock:
            slot = self._slots.get(target_id)
            if slot is not None and self._is_current(target_id, generation):
                slot.status = status

    async def _run(
        self,
        target_id: TargetId,
        result: DiffResult,
        patches: List[Patch],
        fp: _Fingerprint,
        generation: int,
    ) -> DiffState:
        written = False
        try:
            state = await self._generate(target_id, result, patches, generation)
            with self._lock:
                slot = self._slots.get(target_id)
                if slot is not None and self._is_current(target_id, generation):
                    slot.state = state
                    slot.status = DiffStatus.READY
                    slot.has_state = True
                    slot.fingerprint = fp
                    slot.pending = None
                    written = True
            if written:
                self._notify(target_id)
            return state
        finally:
            with self._lock:
                if self._is_current(target_id, generation):
                    del self._inflight[target_id]
                    slot = self._slots.get(target_id)
                    if slot is not None and not written:
                        slot.status = DiffStatus.READY if slot.has_state else DiffStatus.EMPTY
                        slot.pending = None

    async def _generate(
        self,
        target_id: TargetId,
        result: DiffResult,
        patches: List[Patch],
        generation: int,
    ) -> DiffState:
        retry_count = 0
        while True:
            try:
                return await self._build_state(result, patches)
            except DiffToolMissingError:
                raise
            except DiffToolError as e:
                if retry_count >= self.max_retries:
                    logger.error(
                        "Diff generation failed",
                        target_id=str(target_id),
                        attempts=retry_count + 1,
                    )
                    raise DiffGenerationError(target_id, retry_count + 1) from e
                retry_count += 1
                logger.warning(
                    "Diff generation failed, recovering",
                    target_id=str(target_id),
                    attempt=retry_count,
                    error=str(e),
                )

            self._set_status(target_id, generation, DiffStatus.RECOVERING)
            result = await self._recover(target_id, result, retry_count)
            self._set_status(target_id, generation, DiffStatus.DIFFING)

    async def _recover(
        self, target_id: TargetId, result: DiffResult, retry_count: int
    ) -> DiffResult:
        current = self.content_reader(result.file_path)
        if (
            self.merge is not None
            and current is not None
            and has_drifted(result.original, current)
        ):
            try:
                merged = await rebase(result.original, current, result.updated, self.merge)
            except Exception as e:
                logger.warning("Rebase failed", target_id=str(target_id), error=str(e))
            else:
                logger.info("Rebased onto drifted file", target_id=str(target_id))
                return result.model_copy(
                    update={"original": current, "updated": merged, "storage": merged}
                )
        await asyncio.sleep(self.retry_delay_s * retry_count)
        return result

    async def _diff_lines(self, old: str, new: str, file_extension: Optional[str]) -> List[LineChange]:
        raw = await self.executor.unified_diff(old, new, file_extension)
        return parse_unified_diff(old, new, raw)

    def _group_lines(self, lines: List[LineChange], patch: Patch) -> List[LineChange]:
        if not any(line.is_change for line in lines):
            logger.warning("Patch produced no changes", patch_id=patch.key, note=patch.note)
            return []
        sections = changed_sections(lines, self.min_separation)
        return slice_lines(lines, LineRange(sections[0].start, sections[-1].end))

    async def _build_state(self, result: DiffResult, patches: List[Patch]) -> DiffState:
        ext = result.file_extension
        changes = await self._diff_lines(result.original, result.updated, ext)

        groups: List[DiffGroup] = []
        patch_to_group = {}
        group_to_patch = {}
        for patch in patches:
            single = apply_patches([patch], result.original)
            lines = await self._diff_lines(result.original, single, ext)
            group = DiffGroup(lines=self._group_lines(lines, patch))
            if patch.key in patch_to_group:
                logger.warning(
                    "Duplicate patch id, lookup keeps the last group", patch_id=patch.key
                )
            groups.append(group)
            patch_to_group[patch.key] = group.id
            group_to_patch[group.id] = patch.key

        return DiffState(
            result=result,
            parsed_patches=patches,
            groups=groups,
            patch_id_to_group_id=patch_to_group,
            group_id_to_patch_id=group_to_patch,
            changes=changes,
            sections=changed_sections(changes, self.min_separation),
        )
