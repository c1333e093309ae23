# flowdesk/engine.py
"""
Mutation engine: every create, update and delete goes through here.

Deletes cascade so no child outlives its parent:

* project   -> tasks and notes of its workspaces, collaborators, workspaces
* workspace -> its tasks and notes, collaborators, then the workspace
* task      -> its subtasks, then the task

Public operations never raise ``FlowDeskError``; they return a
``MutationResult`` and publish a notification describing the outcome.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as ModelValidationError
from pydantic.alias_generators import to_snake

from flowdesk.events import EventBus, EventKind, FlowEvent, NotificationLevel
from flowdesk.exceptions import (
    BusyError,
    ConflictError,
    FlowDeskError,
    NotFoundError,
    PersistenceError,
    RecordFailure,
    ValidationError,
)
from flowdesk.models import (
    Activity,
    Collaborator,
    Collection,
    Entity,
    ItemType,
    Permission,
    ProjectRef,
    Task,
    TaskStatus,
    WorkspaceRef,
    item_ref,
    model_for,
    utcnow,
)
from flowdesk.resolver import RelationshipResolver
from flowdesk.selection import SelectionState
from flowdesk.store import EntityStore

logger = logging.getLogger(__name__)

Form = Mapping[str, Any]

# form fields the user must fill in, with the word used in the error message
REQUIRED_TEXT: Dict[Collection, Tuple[Tuple[str, str], ...]] = {
    Collection.PROJECTS: (("name", "name"),),
    Collection.WORKSPACES: (("name", "name"),),
    Collection.TASKS: (("title", "title"),),
    Collection.NOTES: (("title", "title"),),
    Collection.USERS: (("name", "name"), ("email", "email address")),
}

# never taken from submitted forms
PROTECTED_FIELDS = {"id", "owner_id", "created_at", "updated_at"}


class MutationResult(BaseModel):
    """Outcome of one engine operation, ready for the presentation layer."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    ok: bool
    value: Any = None
    message: Optional[str] = None
    error_kind: Optional[str] = None
    failures: List[RecordFailure] = Field(default_factory=list)

    @property
    def error(self) -> Optional[str]:
        return None if self.ok else self.message


def _describe(exc: ModelValidationError) -> str:
    parts = []
    for err in exc.errors():
        where = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{where}: {err.get('msg')}" if where else str(err.get("msg")))
    return "; ".join(parts)


class MutationEngine:
    """Cascading, write-through mutations over an ``EntityStore``."""

    def __init__(
        self,
        store: EntityStore,
        selection: Optional[SelectionState] = None,
        bus: Optional[EventBus] = None,
        *,
        actor_id: str = "local-user",
        log_activity: bool = True,
    ) -> None:
        self.store = store
        self.bus = bus or store.bus or EventBus()
        if store.bus is None:
            store.bus = self.bus
        self.selection = selection or SelectionState(self.bus)
        self.resolver = RelationshipResolver(store)
        self.actor_id = actor_id
        self.log_activity = log_activity
        self._pending: Set[str] = set()

    # ------------------------------------------------------------------ #
    # boundary
    # ------------------------------------------------------------------ #
    def is_busy(self, key: str) -> bool:
        return key in self._pending

    async def _run(self, key: str, operation: Callable[[], Awaitable[Tuple[Any, str]]]) -> MutationResult:
        if key in self._pending:
            return await self._fail(BusyError(f"{key} is already in progress"))
        self._pending.add(key)
        try:
            value, message = await operation()
        except FlowDeskError as e:
            return await self._fail(e)
        finally:
            self._pending.discard(key)
        await self.bus.notify(NotificationLevel.SUCCESS, message)
        return MutationResult(ok=True, value=value, message=message)

    async def _fail(self, error: FlowDeskError) -> MutationResult:
        failures = list(getattr(error, "failures", []))
        message = str(error)
        if failures:
            message = f"{message}: " + "; ".join(f.describe() for f in failures)
            for failure in failures:
                logger.error("Write failed for %s", failure.describe())
        logger.warning("%s error: %s", error.kind, message)
        await self.bus.notify(NotificationLevel.ERROR, message, kind=error.kind)
        return MutationResult(ok=False, message=message, error_kind=error.kind, failures=failures)

    # ------------------------------------------------------------------ #
    # helpers
    # ------------------------------------------------------------------ #
    @staticmethod
    def _form(form: Optional[Form]) -> Dict[str, Any]:
        data = {to_snake(str(k)): v for k, v in (form or {}).items()}
        for name in PROTECTED_FIELDS:
            data.pop(name, None)
        return data

    @staticmethod
    def _build(model: Type[Entity], data: Dict[str, Any]) -> Entity:
        try:
            return model.model_validate(data)
        except ModelValidationError as e:
            raise ValidationError(_describe(e)) from None

    @staticmethod
    def _check_required(collection: Collection, data: Dict[str, Any]) -> None:
        for field, label in REQUIRED_TEXT.get(collection, ()):
            value = data.get(field)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"Please enter a {label}")

    def _require(self, collection: Collection, entity_id: Optional[str]) -> Any:
        entity = self.store.get(collection, entity_id)
        if entity is None:
            raise NotFoundError(f"{collection.singular.capitalize()} {entity_id} not found")
        return entity

    def _check_references(self, collection: Collection, data: Dict[str, Any],
                          self_id: Optional[str] = None) -> None:
        if collection is Collection.WORKSPACES:
            if not data.get("project_id"):
                raise ValidationError("Please choose a project")
            self._require(Collection.PROJECTS, data["project_id"])
        elif collection in (Collection.TASKS, Collection.NOTES):
            if data.get("workspace_id"):
                self._require(Collection.WORKSPACES, data["workspace_id"])
        if collection is Collection.TASKS and data.get("parent_task_id"):
            self._check_parent(data["parent_task_id"], self_id)
        if collection is Collection.USERS:
            other = self.resolver.user_by_email(data.get("email", ""))
            if other is not None and other.id != self_id:
                raise ConflictError(f"A user with email {data['email']} already exists")

    def _check_parent(self, parent_id: str, self_id: Optional[str]) -> None:
        """Subtasks are one level deep: a parent must itself be top level."""
        if parent_id == self_id:
            raise ValidationError("A task cannot be its own subtask")
        parent = self._require(Collection.TASKS, parent_id)
        if parent.parent_task_id is not None:
            raise ValidationError("Subtasks cannot have subtasks of their own")
        if self_id is not None and self.resolver.subtasks_of(self_id):
            raise ValidationError("A task with subtasks cannot become a subtask")

    async def _emit(self, kind: EventKind, collection: Collection, entity: Entity,
                    **data: Any) -> None:
        await self.bus.publish(FlowEvent(
            kind=kind, collection=collection.value, entity_id=entity.id,
            data={"label": entity.label, **data},
        ))

    async def _record_activity(self, action: str, item_name: str, item_type: str) -> None:
        """Append to the activity feed; failures are logged and never surfaced."""
        if not self.log_activity:
            return
        entry = Activity(user_id=self.actor_id, owner_id=self.actor_id, action=action,
                         item_name=item_name, item_type=item_type)
        try:
            outcome = await self.store.create(Collection.ACTIVITY, [entry])
        except PersistenceError as e:
            logger.warning("Could not log activity %r: %s", entry.summary, e)
            return
        for failure in outcome.failures:
            logger.warning("Could not log activity %r: %s", entry.summary, failure.describe())

    async def _delete_ids(self, collection: Collection, ids: Sequence[str]) -> List[str]:
        """Delete ``ids``; any failed record stops the caller's cascade."""
        if not ids:
            return []
        outcome = await self.store.delete(collection, ids)
        if outcome.ids:
            await self.bus.publish(FlowEvent(
                kind=EventKind.ENTITY_DELETED, collection=collection.value,
                entity_id=outcome.ids[0] if len(outcome.ids) == 1 else None,
                data={"ids": list(outcome.ids)},
            ))
        outcome.raise_for_failures("delete")
        return outcome.ids

    def _tasks_in(self, workspace_ids: Sequence[str]) -> List[str]:
        """Tasks of the given workspaces plus all their subtasks, children first."""
        wanted = set(workspace_ids)
        ids: List[str] = []
        for task in self.store.filter(Collection.TASKS, lambda t: t.workspace_id in wanted):
            for child in self.resolver.descendants_of(task.id):
                if child.id not in ids:
                    ids.append(child.id)
            if task.id not in ids:
                ids.append(task.id)
        return ids

    async def _purge_workspaces(self, workspace_ids: List[str],
                                project_id: Optional[str] = None) -> None:
        wanted = set(workspace_ids)
        await self._delete_ids(Collection.TASKS, self._tasks_in(workspace_ids))
        await self._delete_ids(Collection.NOTES, [
            n.id for n in self.store.filter(Collection.NOTES, lambda n: n.workspace_id in wanted)
        ])
        refs = {WorkspaceRef(id=w) for w in workspace_ids}
        if project_id is not None:
            refs.add(ProjectRef(id=project_id))
        await self._delete_ids(Collection.COLLABORATORS, [
            c.id for c in self.store.filter(Collection.COLLABORATORS, lambda c: c.item in refs)
        ])
        removed = await self._delete_ids(Collection.WORKSPACES, workspace_ids)
        await self.selection.forget(workspace_ids=removed)

    # ------------------------------------------------------------------ #
    # generic create / update
    # ------------------------------------------------------------------ #
    async def _create(self, collection: Collection, form: Optional[Form]) -> Tuple[Entity, str]:
        data = self._form(form)
        self._check_required(collection, data)
        self._check_references(collection, data)
        now = utcnow()
        entity = self._build(model_for(collection), {
            **data, "owner_id": self.actor_id, "created_at": now, "updated_at": now,
        })
        outcome = await self.store.create(collection, [entity])
        outcome.raise_for_failures("create")
        created = outcome.entities[0]
        logger.info("Created %s %s", collection.singular, created.id)
        await self._emit(EventKind.ENTITY_CREATED, collection, created)
        if collection is not Collection.USERS:
            await self._record_activity("created", created.label, collection.singular)
        return created, f"{collection.singular.capitalize()} created successfully!"

    async def _update(self, collection: Collection, entity_id: str,
                      form: Optional[Form]) -> Tuple[Entity, str]:
        current = self._require(collection, entity_id)
        data = {**current.model_dump(), **self._form(form)}
        self._check_required(collection, data)
        self._check_references(collection, data, self_id=current.id)
        entity = self._build(model_for(collection), {
            **data,
            "id": current.id,
            "owner_id": current.owner_id,
            "created_at": current.created_at,
            "updated_at": utcnow(),
        })
        outcome = await self.store.update(collection, [entity])
        outcome.raise_for_failures("update")
        updated = outcome.entities[0]
        logger.info("Updated %s %s", collection.singular, updated.id)
        await self._emit(EventKind.ENTITY_UPDATED, collection, updated)
        if collection is not Collection.USERS:
            await self._record_activity("updated", updated.label, collection.singular)
        return updated, f"{collection.singular.capitalize()} updated successfully!"

    async def _deleted(self, collection: Collection, entity: Entity) -> str:
        logger.info("Deleted %s %s", collection.singular, entity.id)
        await self._record_activity("deleted", entity.label, collection.singular)
        return f"{collection.singular.capitalize()} deleted successfully!"

    # ------------------------------------------------------------------ #
    # loading
    # ------------------------------------------------------------------ #
    async def load(self) -> MutationResult:
        """Load the store, reporting failure instead of raising."""
        async def _load() -> Tuple[Dict[str, int], str]:
            await self.store.load()
            return self.store.counts(), "Data loaded"
        return await self._run("load", _load)

    # ------------------------------------------------------------------ #
    # projects
    # ------------------------------------------------------------------ #
    async def create_project(self, form: Form) -> MutationResult:
        return await self._run("create:projects", lambda: self._create(Collection.PROJECTS, form))

    async def update_project(self, project_id: str, form: Form) -> MutationResult:
        return await self._run(f"update:projects:{project_id}",
                               lambda: self._update(Collection.PROJECTS, project_id, form))

    async def delete_project(self, project_id: str) -> MutationResult:
        async def _delete() -> Tuple[Entity, str]:
            project = self._require(Collection.PROJECTS, project_id)
            workspace_ids = [w.id for w in self.resolver.workspaces_of(project_id)]
            await self._purge_workspaces(workspace_ids, project_id=project_id)
            await self._delete_ids(Collection.PROJECTS, [project_id])
            await self.selection.forget(project_id=project_id)
            return project, await self._deleted(Collection.PROJECTS, project)
        return await self._run(f"delete:projects:{project_id}", _delete)

    # ------------------------------------------------------------------ #
    # workspaces
    # ------------------------------------------------------------------ #
    async def create_workspace(self, form: Form) -> MutationResult:
        return await self._run("create:workspaces", lambda: self._create(Collection.WORKSPACES, form))

    async def update_workspace(self, workspace_id: str, form: Form) -> MutationResult:
        return await self._run(f"update:workspaces:{workspace_id}",
                               lambda: self._update(Collection.WORKSPACES, workspace_id, form))

    async def delete_workspace(self, workspace_id: str) -> MutationResult:
        async def _delete() -> Tuple[Entity, str]:
            workspace = self._require(Collection.WORKSPACES, workspace_id)
            await self._purge_workspaces([workspace_id])
            return workspace, await self._deleted(Collection.WORKSPACES, workspace)
        return await self._run(f"delete:workspaces:{workspace_id}", _delete)

    async def choose_workspace(self, workspace_id: str) -> None:
        """Announce a workspace picked in another panel."""
        await self.bus.publish(FlowEvent(
            kind=EventKind.WORKSPACE_CHOSEN, collection=Collection.WORKSPACES.value,
            entity_id=workspace_id))

    # ------------------------------------------------------------------ #
    # tasks
    # ------------------------------------------------------------------ #
    async def create_task(self, form: Form) -> MutationResult:
        return await self._run("create:tasks", lambda: self._create(Collection.TASKS, form))

    async def create_subtask(self, parent_task_id: str, form: Form) -> MutationResult:
        return await self._run(
            f"create:tasks:{parent_task_id}",
            lambda: self._create(Collection.TASKS, {**form, "parent_task_id": parent_task_id}),
        )

    async def update_task(self, task_id: str, form: Form) -> MutationResult:
        return await self._run(f"update:tasks:{task_id}",
                               lambda: self._update(Collection.TASKS, task_id, form))

    async def delete_task(self, task_id: str) -> MutationResult:
        async def _delete() -> Tuple[Entity, str]:
            task = self._require(Collection.TASKS, task_id)
            await self._delete_ids(Collection.TASKS, [t.id for t in self.resolver.descendants_of(task_id)])
            await self._delete_ids(Collection.TASKS, [task_id])
            return task, await self._deleted(Collection.TASKS, task)
        return await self._run(f"delete:tasks:{task_id}", _delete)

    async def toggle_task_status(self, task_id: str) -> MutationResult:
        """Flip between completed and pending; never passes through in-progress."""
        async def _toggle() -> Tuple[Entity, str]:
            task: Task = self._require(Collection.TASKS, task_id)
            status = TaskStatus.PENDING if task.is_completed else TaskStatus.COMPLETED
            outcome = await self.store.update(Collection.TASKS, [
                task.model_copy(update={"status": status, "updated_at": utcnow()}),
            ])
            outcome.raise_for_failures("update")
            toggled = outcome.entities[0]
            await self._emit(EventKind.ENTITY_UPDATED, Collection.TASKS, toggled, status=status.value)
            await self._record_activity(f"marked {status.value}", toggled.label, "task")
            return toggled, f"Task {status.value}!"
        return await self._run(f"update:tasks:{task_id}", _toggle)

    # ------------------------------------------------------------------ #
    # notes
    # ------------------------------------------------------------------ #
    async def create_note(self, form: Form) -> MutationResult:
        return await self._run("create:notes", lambda: self._create(Collection.NOTES, form))

    async def update_note(self, note_id: str, form: Form) -> MutationResult:
        return await self._run(f"update:notes:{note_id}",
                               lambda: self._update(Collection.NOTES, note_id, form))

    async def delete_note(self, note_id: str) -> MutationResult:
        async def _delete() -> Tuple[Entity, str]:
            note = self._require(Collection.NOTES, note_id)
            await self._delete_ids(Collection.NOTES, [note_id])
            return note, await self._deleted(Collection.NOTES, note)
        return await self._run(f"delete:notes:{note_id}", _delete)

    # ------------------------------------------------------------------ #
    # users & collaborators
    # ------------------------------------------------------------------ #
    async def create_user(self, form: Form) -> MutationResult:
        return await self._run("create:users", lambda: self._create(Collection.USERS, form))

    async def invite_collaborator(
        self,
        email: str,
        item_id: str,
        item_type: Union[ItemType, str],
        permission: Union[Permission, str] = Permission.EDITOR,
    ) -> MutationResult:
        async def _invite() -> Tuple[Entity, str]:
            if not isinstance(email, str) or not email.strip():
                raise ValidationError("Please enter an email address")
            ref = item_ref(item_type, item_id)
            try:
                level = Permission(permission)
            except ValueError:
                raise ValidationError(f"Unknown permission: {permission!r}") from None
            if self.resolver.resolve_item(ref) is None:
                raise NotFoundError(f"{ref.kind.capitalize()} {item_id} not found")
            user = self.resolver.user_by_email(email)
            if user is None:
                raise NotFoundError(f"No user found with email {email.strip()}")
            if any(c.user_id == user.id for c in self.resolver.collaborators_of(ref.id, ref.kind)):
                raise ConflictError(f"{user.name} is already a collaborator on this {ref.kind}")

            collaborator = Collaborator(
                user_id=user.id, item=ref, permission=level,
                invited_by=self.actor_id, owner_id=self.actor_id,
            )
            outcome = await self.store.create(Collection.COLLABORATORS, [collaborator])
            outcome.raise_for_failures("create")
            created = outcome.entities[0]
            await self._emit(EventKind.ENTITY_CREATED, Collection.COLLABORATORS, created)
            await self._record_activity("invited", user.name, ref.kind)
            return created, f"{user.name} invited as {level.value}"
        kind = getattr(item_type, "value", item_type)
        return await self._run(f"invite:{kind}:{item_id}", _invite)

    async def change_permission(self, collaborator_id: str,
                                permission: Union[Permission, str]) -> MutationResult:
        async def _change() -> Tuple[Entity, str]:
            current = self._require(Collection.COLLABORATORS, collaborator_id)
            try:
                level = Permission(permission)
            except ValueError:
                raise ValidationError(f"Unknown permission: {permission!r}") from None
            outcome = await self.store.update(Collection.COLLABORATORS, [
                current.model_copy(update={"permission": level, "updated_at": utcnow()}),
            ])
            outcome.raise_for_failures("update")
            updated = outcome.entities[0]
            await self._emit(EventKind.ENTITY_UPDATED, Collection.COLLABORATORS, updated)
            return updated, f"Permission changed to {level.value}"
        return await self._run(f"update:collaborators:{collaborator_id}", _change)

    async def remove_collaborator(self, collaborator_id: str) -> MutationResult:
        async def _remove() -> Tuple[Entity, str]:
            collaborator = self._require(Collection.COLLABORATORS, collaborator_id)
            await self._delete_ids(Collection.COLLABORATORS, [collaborator_id])
            return collaborator, "Collaborator removed"
        return await self._run(f"delete:collaborators:{collaborator_id}", _remove)
