"""Bounded journal of compensating actions for recent mutations"""

from typing import Any, Dict, List, Optional

from payables_gateway.config import settings
from payables_gateway.domain.exceptions import DomainException, NotFoundError, ValidationError
from payables_gateway.domain.models import UndoAction, UndoKind
from payables_gateway.infrastructure.database.repositories import RowStore
from payables_gateway.infrastructure.observability.logging import log_undo
from payables_gateway.infrastructure.observability.metrics import undo_counter


class UndoJournal:
    """
    In-memory, newest-first list of at most `capacity` undo actions.

    Actions move recorded -> reversed (removed by undo) or recorded -> evicted
    (pushed out by newer actions). The journal is owned by its caller and is
    lost with the process.
    """

    def __init__(self, capacity: Optional[int] = None):
        self.capacity = capacity or settings.undo_capacity
        self._actions: List[UndoAction] = []

    def __len__(self) -> int:
        return len(self._actions)

    def record(
        self,
        kind: UndoKind,
        table: str,
        data: Dict[str, Any],
        description: str,
        original_data: Optional[Dict[str, Any]] = None,
    ) -> UndoAction:
        """Add an action to the front of the journal, evicting the oldest beyond capacity"""
        if kind == UndoKind.UPDATE and original_data is None:
            raise ValidationError("Ação de atualização sem dados originais")
        if "id" not in data:
            raise ValidationError("Ação de desfazer sem identificador do registro")

        action = UndoAction(
            kind=kind,
            table=table,
            data=dict(data),
            original_data=dict(original_data) if original_data is not None else None,
            description=description,
        )
        self._actions.insert(0, action)
        undo_counter.labels(kind=kind.value, outcome="recorded").inc()

        for evicted in self._actions[self.capacity:]:
            undo_counter.labels(kind=evicted.kind.value, outcome="evicted").inc()
            log_undo(evicted.id, evicted.kind.value, evicted.table, "evicted")
        del self._actions[self.capacity:]

        return action

    def list(self) -> List[UndoAction]:
        return list(self._actions)

    def get(self, action_id: str) -> UndoAction:
        for action in self._actions:
            if action.id == action_id:
                return action
        raise NotFoundError(f"Ação {action_id} não está mais disponível para desfazer")

    def undo(self, action_id: str, store: RowStore) -> UndoAction:
        """
        Apply the compensating write of one action and drop it from the journal.

        - delete: re-insert the captured row
        - update: overwrite the row with the captured prior payload
        - insert: delete the row by its captured id

        Callers must have the operator's confirmation first: undoing an insert
        deletes the row for good.

        Raises:
            NotFoundError: Action not in the journal, or target row gone
            PersistenceError: Store rejected the write; the action stays for retry
        """
        action = self.get(action_id)
        row_id = action.data["id"]

        try:
            if action.kind == UndoKind.DELETE:
                store.insert(action.table, action.data)
            elif action.kind == UndoKind.UPDATE:
                store.update(action.table, row_id, action.original_data)
            else:
                store.delete(action.table, row_id)
            store.commit()
        except DomainException:
            undo_counter.labels(kind=action.kind.value, outcome="failed").inc()
            log_undo(action.id, action.kind.value, action.table, "failed")
            raise

        self._actions.remove(action)
        undo_counter.labels(kind=action.kind.value, outcome="applied").inc()
        log_undo(action.id, action.kind.value, action.table, "applied")
        return action
