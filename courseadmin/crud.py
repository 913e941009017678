"""
Create / update / delete against the remote store.

Every operation follows the same sequence:

    take the save guard -> write -> reload the affected collection -> release the guard

Only one operation may run at a time (any kind). A write or reload failure is
logged and kept in `last_error`; the store keeps its last good snapshot and
the operation returns False. A failed reload after an accepted write is
reported separately, so callers never send the same write twice.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterator, Optional

from courseadmin.errors import InvalidOperation, LoadFailure, RemoteWriteError
from courseadmin.forms import DeleteTarget, DialogState
from courseadmin.model import EntityKind, Record
from courseadmin.store import EntityStore

logger = logging.getLogger(__name__)


class SaveGuard:
    """
    Single-flight flag shared by all mutations.

    While `saving` is True, front ends disable their save/delete controls and
    the orchestrator rejects new operations.
    """

    def __init__(self) -> None:
        self.saving = False

    @contextmanager
    def hold(self) -> Iterator[bool]:
        """
        Yield True if the guard was acquired, False if another operation holds it.
        """
        if self.saving:
            yield False
            return
        self.saving = True
        try:
            yield True
        finally:
            self.saving = False

class CrudOrchestrator:
    def __init__(self, store: EntityStore, guard: Optional[SaveGuard] = None) -> None:
        self.store = store
        self.guard = guard or SaveGuard()
        self.last_error: Optional[BaseException] = None

    @property
    def saving(self) -> bool:
        return self.guard.saving

    async def _attempt(self, kind: EntityKind, action: str, write: Callable[[], Awaitable[Any]]) -> tuple[bool, bool]:
        """
        Run one guarded write + reload. Returns (done, write_applied).

        write_applied is True once the store accepted the write, also when the
        reload after it failed; such a write must not be sent again.
        """
        with self.guard.hold() as acquired:
            if not acquired:
                logger.warning("Ignoring %s on %s: another save is still running", action, kind.cli_name)
                return False, False
            try:
                await write()
            except RemoteWriteError as exc:
                self.last_error = exc
                logger.error("Error during %s on %s: %s", action, kind.cli_name, exc)
                return False, False
            try:
                await self.store.reload(kind)
            except LoadFailure as exc:
                self.last_error = exc
                logger.error("%s on %s saved, but reload failed: %s", action.capitalize(), kind.cli_name, exc)
                return False, True
            self.last_error = None
            logger.info("%s on %s done", action.capitalize(), kind.cli_name)
            return True, True

    def _create_write(self, kind: EntityKind, payload: dict[str, Any]) -> Callable[[], Awaitable[Any]]:
        client = self.store.collaborator
        return lambda: client.create_record(kind, payload)

    def _update_write(self, kind: EntityKind, record_id: Optional[str], payload: dict[str, Any]) -> Callable[[], Awaitable[Any]]:
        if not record_id:
            raise InvalidOperation(f"Update on {kind.cli_name} without a record id")
        client = self.store.collaborator
        return lambda: client.update_record(kind, record_id, payload)

    async def create(self, kind: EntityKind, payload: dict[str, Any]) -> bool:
        done, _ = await self._attempt(kind, "create", self._create_write(kind, payload))
        return done

    async def update(self, kind: EntityKind, record_id: Optional[str], payload: dict[str, Any]) -> bool:
        done, _ = await self._attempt(kind, "update", self._update_write(kind, record_id, payload))
        return done

    async def delete(self, kind: EntityKind, record_id: str) -> bool:
        if not record_id:
            raise InvalidOperation(f"Delete on {kind.cli_name} without a record id")
        client = self.store.collaborator
        done, _ = await self._attempt(kind, "delete", lambda: client.delete_record(kind, record_id))
        return done

    async def toggle_paid(self, enrollment: Record) -> bool:
        """
        Flip only the 'bezahlt' flag of one enrollment.
        """
        payload = {"bezahlt": not bool(enrollment.get("bezahlt"))}
        return await self.update(EntityKind.ENROLLMENT, enrollment.record_id, payload)

    async def submit(self, dialog: DialogState) -> bool:
        """
        Save the dialog's form.

        The dialog is closed once the store accepted the write, also when the
        reload after it failed. It stays open only if the write was rejected.
        """
        payload = dialog.active_form.to_payload(self.store.codec)
        if dialog.mode == "create":
            done, applied = await self._attempt(dialog.kind, "create", self._create_write(dialog.kind, payload))
        else:
            write = self._update_write(dialog.kind, dialog.editing_id, payload)
            done, applied = await self._attempt(dialog.kind, "update", write)
        if applied:
            dialog.close()
        return done

    async def confirm_delete(self, target: DeleteTarget) -> bool:
        return await self.delete(target.kind, target.record_id)
