"""
Typed key-namespace registry.

A KeyNamespace ties together, for one kind of mirrored list:
- the local store key (``mockFollowups_<applicationId>``, ``notes.<contactId>``)
- the query keys dependents subscribe to (detail, list, aggregates)
- the REST paths of the remote resource
- the date field the list is ordered by

The registry is the only place that knows these strings; everything else
passes KeyNamespace objects around.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .entities import EntityId

QueryKey = Tuple[str, ...]


def _text(value: EntityId) -> str:
    return str(value)


@dataclass(frozen=True)
class KeyNamespace:
    """
    Storage and query-key conventions for one mirrored list.

    Attributes:
        name: Short identifier used in logs ("followups")
        storage_prefix: Local store key prefix ("mockFollowups")
        separator: Joins prefix and parent id ("_" or ".")
        resource: Owning REST resource ("applications")
        collection: Child collection under the owner ("followups"), or
            None for top-level lists such as applications themselves
        aggregate_keys: Dashboard-style views that depend on this list
        sort_field: camelCase date field for ordering, or None
        remote: False for lists that exist only in the local mirror
    """

    name: str
    storage_prefix: str
    separator: str
    resource: str
    collection: Optional[str] = None
    aggregate_keys: Tuple[QueryKey, ...] = ()
    sort_field: Optional[str] = None
    remote: bool = True

    @property
    def is_top_level(self) -> bool:
        return self.collection is None

    def storage_key(self, parent_id: Optional[EntityId] = None) -> str:
        """Local store key for the list owned by parent_id."""
        if parent_id is None:
            return self.storage_prefix
        return f"{self.storage_prefix}{self.separator}{_text(parent_id)}"

    def parse_storage_key(self, key: str) -> Tuple[bool, Optional[str]]:
        """
        Check whether key belongs to this namespace.

        Returns:
            (matched, parent_id) where parent_id is None for the un-parented key
        """
        if key == self.storage_prefix:
            return True, None
        prefix = f"{self.storage_prefix}{self.separator}"
        if key.startswith(prefix) and len(key) > len(prefix):
            return True, key[len(prefix):]
        return False, None

    def list_key(self, parent_id: Optional[EntityId] = None) -> QueryKey:
        if self.is_top_level or parent_id is None:
            return (self.resource,)
        return (self.resource, _text(parent_id), self.collection)

    def detail_key(
        self,
        parent_id: Optional[EntityId] = None,
        entity_id: Optional[EntityId] = None,
    ) -> Optional[QueryKey]:
        """
        Detail view of the owning entity.

        For child lists the owner is the parent; for top-level lists the
        edited entity is its own owner.
        """
        if self.is_top_level:
            return (self.resource, _text(entity_id)) if entity_id is not None else None
        if parent_id is None:
            return None
        return (self.resource, _text(parent_id))

    def query_keys(
        self,
        parent_id: Optional[EntityId] = None,
        entity_id: Optional[EntityId] = None,
    ) -> List[QueryKey]:
        """All query keys invalidated by a change to this list."""
        keys: List[QueryKey] = []
        detail = self.detail_key(parent_id, entity_id)
        if detail is not None:
            keys.append(detail)
        keys.append(self.list_key(parent_id))
        keys.extend(self.aggregate_keys)
        return keys

    def collection_path(self, parent_id: Optional[EntityId] = None) -> str:
        if self.is_top_level:
            return f"/api/{self.resource}"
        return f"/api/{self.resource}/{_text(parent_id)}/{self.collection}"

    def item_path(self, parent_id: Optional[EntityId], entity_id: EntityId) -> str:
        return f"{self.collection_path(parent_id)}/{_text(entity_id)}"


UPCOMING_INTERVIEWS_KEY: QueryKey = ("dashboard", "upcoming-interviews")
ALL_FOLLOWUPS_KEY: QueryKey = ("followups", "all")
NEED_FOLLOWUP_KEY: QueryKey = ("contacts", "need-followup")


APPLICATIONS = KeyNamespace(
    name="applications",
    storage_prefix="mockJobApplications",
    separator="_",
    resource="applications",
    aggregate_keys=(UPCOMING_INTERVIEWS_KEY, ALL_FOLLOWUPS_KEY),
)

INTERVIEW_STAGES = KeyNamespace(
    name="interview_stages",
    storage_prefix="mockInterviewStages",
    separator="_",
    resource="applications",
    collection="stages",
    aggregate_keys=(UPCOMING_INTERVIEWS_KEY,),
    sort_field="scheduledDate",
)

FOLLOWUPS = KeyNamespace(
    name="followups",
    storage_prefix="mockFollowups",
    separator="_",
    resource="applications",
    collection="followups",
    aggregate_keys=(ALL_FOLLOWUPS_KEY,),
    sort_field="dueDate",
)

CONTACTS = KeyNamespace(
    name="contacts",
    storage_prefix="mockContacts",
    separator="_",
    resource="contacts",
    aggregate_keys=(NEED_FOLLOWUP_KEY,),
)

CONTACT_FOLLOWUPS = KeyNamespace(
    name="contact_followups",
    storage_prefix="mockContactFollowups",
    separator="_",
    resource="contacts",
    collection="followups",
    aggregate_keys=(NEED_FOLLOWUP_KEY, ALL_FOLLOWUPS_KEY),
    sort_field="dueDate",
)

CONTACT_INTERACTIONS = KeyNamespace(
    name="contact_interactions",
    storage_prefix="mockContactInteractions",
    separator="_",
    resource="contacts",
    collection="interactions",
    aggregate_keys=(NEED_FOLLOWUP_KEY,),
)

CONTACT_NOTES = KeyNamespace(
    name="contact_notes",
    storage_prefix="notes",
    separator=".",
    resource="contacts",
    collection="notes",
    remote=False,
)


@dataclass
class NamespaceRegistry:
    """Lookup of namespaces by name and by storage key."""

    namespaces: Dict[str, KeyNamespace] = field(default_factory=dict)

    def register(self, namespace: KeyNamespace) -> KeyNamespace:
        existing = self.namespaces.get(namespace.name)
        if existing is not None and existing != namespace:
            raise ValueError(f"Namespace '{namespace.name}' already registered")
        self.namespaces[namespace.name] = namespace
        return namespace

    def get(self, name: str) -> KeyNamespace:
        try:
            return self.namespaces[name]
        except KeyError:
            raise KeyError(f"Unknown namespace: {name}") from None

    def resolve_storage_key(self, key: str) -> Optional[Tuple[KeyNamespace, Optional[str]]]:
        """
        Find the namespace and parent id a storage key belongs to.

        Longest prefix wins so "mockContactFollowups_3" is never read as
        some shorter prefix.
        """
        for namespace in sorted(
            self.namespaces.values(), key=lambda ns: len(ns.storage_prefix), reverse=True
        ):
            matched, parent_id = namespace.parse_storage_key(key)
            if matched:
                return namespace, parent_id
        return None

    def __iter__(self):
        return iter(self.namespaces.values())

    def __contains__(self, name: str) -> bool:
        return name in self.namespaces


DEFAULT_NAMESPACES: Iterable[KeyNamespace] = (
    APPLICATIONS,
    INTERVIEW_STAGES,
    FOLLOWUPS,
    CONTACTS,
    CONTACT_FOLLOWUPS,
    CONTACT_INTERACTIONS,
    CONTACT_NOTES,
)


def default_registry() -> NamespaceRegistry:
    """Registry with every namespace the career data uses."""
    registry = NamespaceRegistry()
    for namespace in DEFAULT_NAMESPACES:
        registry.register(namespace)
    return registry
