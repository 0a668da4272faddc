# pylitetrigger.py
import os
import json
import math
import time
import logging
import binascii
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)


# =========================
# Errors
# =========================
class LiteTriggerError(Exception):
    """Base class for pylitetrigger errors."""
    pass

class InvalidDocumentError(LiteTriggerError):
    """Raised when a document holds values outside the JSON value types or lacks a usable identity."""
    pass

class InvalidQueryError(LiteTriggerError):
    """Raised when query syntax is invalid."""
    pass

class InvalidUpdateError(LiteTriggerError):
    """Raised when an update specification is invalid."""
    pass

class MalformedUpdatePathError(InvalidUpdateError):
    """Raised when an update path cannot be resolved, e.g. '$' with no capture left."""
    pass

class ImmutableFieldError(InvalidUpdateError):
    """Raised when an update would change a stored document's identity."""
    pass

class DuplicateKeyError(LiteTriggerError):
    """Raised when violating the unique identity constraint."""
    pass

class TriggerError(LiteTriggerError):
    """Raised when a trigger registration is invalid."""
    pass


# =========================
# Config
# =========================
@dataclass
class CollectionConfig:
    id_field: str = "_id"
    auto_id: bool = True

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if not self.id_field or "." in self.id_field or self.id_field.startswith("$"):
            raise ValueError(
                f"id_field must be a plain field name, got {self.id_field!r}"
            )


# =========================
# Utils
# =========================
_MISSING = object()

def generate_object_id() -> str:
    """Generate a 24-char hex string similar to Mongo ObjectId."""
    ts = int(time.time())
    rand = binascii.b2a_hex(os.urandom(8)).decode("ascii")
    return f"{ts:08x}{rand}"[:24]

def check_value(value, path: str = "value"):
    """Reject anything that is not null, bool, number, string, list or str-keyed dict."""
    if value is None or isinstance(value, (bool, str)):
        return
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidDocumentError(f"{path}: non-finite number {value!r}")
        return
    if isinstance(value, list):
        for i, item in enumerate(value):
            check_value(item, f"{path}.{i}")
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise InvalidDocumentError(f"{path}: field names must be strings, got {key!r}")
            check_value(item, f"{path}.{key}")
        return
    raise InvalidDocumentError(f"{path}: unsupported value type {type(value).__name__}")

def clone(value, path: str = "value"):
    check_value(value, path)
    return json.loads(json.dumps(value))  # deep copy

def is_number(x) -> bool:
    return isinstance(x, (int, float)) and not isinstance(x, bool)

def values_equal(a, b) -> bool:
    """Structural equality where booleans never equal numbers."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(values_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(values_equal(a[k], b[k]) for k in a)
    return type(a) is type(b) and a == b

def deep_get(doc, dotted_key: str, default=None):
    cur = doc
    for p in dotted_key.split("."):
        if isinstance(cur, dict) and p in cur:
            cur = cur[p]
        elif isinstance(cur, list) and p.isdecimal() and int(p) < len(cur):
            cur = cur[int(p)]
        else:
            return default
    return cur

def deep_set(doc: dict, dotted_key: str, value):
    parts = dotted_key.split(".")
    cur = doc
    for p in parts[:-1]:
        if p not in cur or not isinstance(cur[p], dict):
            cur[p] = {}
        cur = cur[p]
    cur[parts[-1]] = value

def deep_unset(doc: dict, dotted_key: str):
    parts = dotted_key.split(".")
    parent = deep_get(doc, ".".join(parts[:-1]), None) if len(parts) > 1 else doc
    if isinstance(parent, dict):
        parent.pop(parts[-1], None)


# =========================
# Results
# =========================
class InsertResult:
    def __init__(self, inserted_id, applied: bool = True):
        self.inserted_id = inserted_id
        self.applied = applied

class UpdateResult:
    def __init__(self, matched_count, modified_count, cancelled_count=0):
        self.matched_count = matched_count
        self.modified_count = modified_count
        self.cancelled_count = cancelled_count

class DeleteResult:
    def __init__(self, deleted_count, cancelled_count=0):
        self.deleted_count = deleted_count
        self.cancelled_count = cancelled_count


# =========================
# Query engine
# =========================
COMPARATORS = {
    "$eq", "$ne", "$gt", "$gte", "$lt", "$lte",
    "$in", "$nin", "$exists"
}
LOGICAL = {"$and", "$or", "$not"}
_NEGATIONS = {"$ne": "$eq", "$nin": "$in"}

def match_query(doc: dict, query: dict) -> Optional[List[int]]:
    """Match ``doc`` against ``query``.

    Returns None when the document does not match. Otherwise returns the
    indexes of the array elements that satisfied the query, in the order they
    were visited: query keys left to right, outer arrays before inner ones.
    Update paths consume these through the positional ``$`` segment.
    """
    if not isinstance(query, dict):
        raise InvalidQueryError("Query must be a dict.")
    captures: List[int] = []
    if _match_document(doc, query, captures):
        return captures
    return None

def _match_document(doc: dict, query: dict, captures: List[int]) -> bool:
    for key, cond in query.items():
        if key in LOGICAL:
            ok = _eval_logical(doc, key, cond, captures)
        elif key.startswith("$"):
            raise InvalidQueryError(f"Unsupported operator: {key}")
        else:
            ok = _match_path(doc, key.split("."), cond, captures)
        if not ok:
            return False
    return True

def _eval_logical(doc: dict, op: str, clauses, captures: List[int]) -> bool:
    if op in {"$and", "$or"}:
        if not isinstance(clauses, list) or not all(isinstance(c, dict) for c in clauses):
            raise InvalidQueryError(f"{op} requires a list of query dicts.")
        if op == "$and":
            return all(_match_document(doc, clause, captures) for clause in clauses)
        for clause in clauses:
            found: List[int] = []
            if _match_document(doc, clause, found):
                captures.extend(found)
                return True
        return False
    if not isinstance(clauses, dict):
        raise InvalidQueryError("$not requires a single query dict.")
    return not _match_document(doc, clauses, [])

def _match_path(value, segments: List[str], cond, captures: List[int]) -> bool:
    if not segments:
        return _match_value(value, cond, captures)
    head, rest = segments[0], segments[1:]
    if isinstance(value, dict):
        return _match_path(value.get(head, _MISSING), rest, cond, captures)
    if isinstance(value, list):
        if head.isdecimal():
            index = int(head)
            child = value[index] if index < len(value) else _MISSING
            return _match_path(child, rest, cond, captures)
        # dotted key crossing an array: some element must match the remainder
        for index, element in enumerate(value):
            found: List[int] = []
            if _match_path(element, segments, cond, found):
                captures.append(index)
                captures.extend(found)
                return True
        return False
    return _match_value(_MISSING, cond, captures)

def _is_operator_clause(cond) -> bool:
    return (isinstance(cond, dict) and len(cond) > 0
            and all(k.startswith("$") and k not in LOGICAL for k in cond))

def _match_value(value, cond, captures: List[int]) -> bool:
    if _is_operator_clause(cond):
        return _eval_operators(value, cond, captures)
    if value is _MISSING:
        return False
    if isinstance(value, list) and not isinstance(cond, list):
        for index, element in enumerate(value):
            found: List[int] = []
            if _match_value(element, cond, found):
                captures.append(index)
                captures.extend(found)
                return True
        return False
    if isinstance(cond, dict):
        return isinstance(value, dict) and _match_document(value, cond, captures)
    return values_equal(value, cond)

def _eval_operators(value, clause: dict, captures: List[int]) -> bool:
    positive = {}
    for op, arg in clause.items():
        if op not in COMPARATORS:
            raise InvalidQueryError(f"Unsupported operator: {op}")
        if op == "$exists":
            if bool(arg) != (value is not _MISSING):
                return False
        elif op in _NEGATIONS:
            if _eval_operators(value, {_NEGATIONS[op]: arg}, []):
                return False
        else:
            positive[op] = arg
    if not positive:
        return True
    if value is _MISSING:
        return False
    if isinstance(value, list):
        for index, element in enumerate(value):
            if all(_eval_op(element, op, arg) for op, arg in positive.items()):
                captures.append(index)
                return True
    return all(_eval_op(value, op, arg) for op, arg in positive.items())

def _eval_op(val, op: str, arg) -> bool:
    if op == "$eq": return values_equal(val, arg)
    if op == "$in":
        if not isinstance(arg, list):
            raise InvalidQueryError("$in requires a list.")
        return any(values_equal(val, a) for a in arg)
    # ordering only between two numbers or two strings
    if not ((is_number(val) and is_number(arg)) or (isinstance(val, str) and isinstance(arg, str))):
        return False
    if op == "$gt": return val > arg
    if op == "$gte": return val >= arg
    if op == "$lt": return val < arg
    if op == "$lte": return val <= arg
    return False


# =========================
# Update engine
# =========================
POSITIONAL = "$"
UPDATE_OPERATORS = {"$set", "$unset", "$inc", "$push", "$pull"}

class _CaptureCursor:
    """Hands out match captures to positional segments, left to right."""

    def __init__(self, captures: Iterable[int]):
        self._captures = list(captures)
        self._next = 0

    def take(self, path: str) -> int:
        if self._next >= len(self._captures):
            raise MalformedUpdatePathError(
                f"Positional '$' in '{path}' has no matching array element left in the query."
            )
        index = self._captures[self._next]
        self._next += 1
        return index

def apply_update(base: dict, changes: dict, captures: Iterable[int] = ()) -> dict:
    """Return a copy of ``base`` with ``changes`` applied; ``base`` is left untouched.

    Plain keys are dotted paths whose value replaces what is at the path.
    A dict value addressed through a trailing ``$``, or whose own keys are
    paths, is merged field by field into the addressed element instead.
    Keys are applied in order, so the last write to a path wins.
    """
    if not isinstance(changes, dict):
        raise InvalidUpdateError("Update must be a dict.")
    new_doc = clone(base, "document")
    cursor = _CaptureCursor(captures)
    for key, value in changes.items():
        if key in UPDATE_OPERATORS:
            _apply_operator(new_doc, key, value, cursor)
        elif key.startswith("$"):
            raise InvalidUpdateError(f"Unsupported update operator: {key}")
        else:
            _set_path(new_doc, key, value, cursor)
    return new_doc

def _segment_key(container, seg: str, path: str, cursor: _CaptureCursor):
    if seg == POSITIONAL:
        if not isinstance(container, list):
            raise MalformedUpdatePathError(f"Positional '$' in '{path}' does not address an array.")
        index = cursor.take(path)
        if index >= len(container):
            raise MalformedUpdatePathError(f"Positional '$' in '{path}' is out of range ({index}).")
        return index
    if isinstance(container, list):
        if not seg.isdecimal():
            raise MalformedUpdatePathError(f"Cannot address field '{seg}' of an array in '{path}'.")
        index = int(seg)
        if index >= len(container):
            raise MalformedUpdatePathError(f"Index {index} in '{path}' is out of range.")
        return index
    if not seg or seg.startswith("$"):
        raise MalformedUpdatePathError(f"Invalid segment {seg!r} in update path '{path}'.")
    return seg

def _get(container, key, default=_MISSING):
    if isinstance(container, list):
        return container[key]
    return container.get(key, default)

def _resolve_parent(doc, path: str, cursor: _CaptureCursor, create: bool = True):
    """Walk ``path`` and return ``(container, key)`` for its last segment.

    With ``create`` unset, returns None where the path does not exist instead
    of building the missing dicts.
    """
    segments = path.split(".")
    cur = doc
    for seg in segments[:-1]:
        key = _segment_key(cur, seg, path, cursor)
        nxt = _get(cur, key)
        if not isinstance(nxt, (dict, list)):
            if not create:
                return None
            nxt = {}
            cur[key] = nxt
        cur = nxt
    return cur, _segment_key(cur, segments[-1], path, cursor)

def _is_path_keyed(value) -> bool:
    return isinstance(value, dict) and any("." in k or "$" in k for k in value)

def _set_path(doc, path: str, value, cursor: _CaptureCursor):
    container, key = _resolve_parent(doc, path, cursor)
    if isinstance(value, dict) and (path.rsplit(".", 1)[-1] == POSITIONAL or _is_path_keyed(value)):
        element = _get(container, key)
        if not isinstance(element, dict):
            element = {}
            container[key] = element
        for sub_path, sub_value in value.items():
            _set_path(element, sub_path, sub_value, cursor)
        return
    container[key] = clone(value, path)

def _apply_operator(doc: dict, op: str, changes, cursor: _CaptureCursor):
    if not isinstance(changes, dict):
        raise InvalidUpdateError(f"{op} requires a dict of paths.")
    for path, value in changes.items():
        if op == "$set":
            _set_path(doc, path, value, cursor)
        elif op == "$unset":
            found = _resolve_parent(doc, path, cursor, create=False)
            if found is None:
                continue
            container, key = found
            if isinstance(container, list):
                container[key] = None  # keep sibling positions stable
            else:
                container.pop(key, None)
        elif op == "$inc":
            container, key = _resolve_parent(doc, path, cursor)
            cur = _get(container, key, 0)
            if not is_number(cur) or not is_number(value):
                raise InvalidUpdateError(f"$inc requires numeric field and amount: {path}")
            container[key] = cur + value
        elif op == "$push":
            container, key = _resolve_parent(doc, path, cursor)
            arr = _get(container, key, None)
            if arr is None:
                arr = []
            if not isinstance(arr, list):
                raise InvalidUpdateError(f"$push requires array field: {path}")
            items = value["$each"] if isinstance(value, dict) and "$each" in value else [value]
            if not isinstance(items, list):
                raise InvalidUpdateError(f"$each requires a list: {path}")
            arr.extend(clone(items, path))
            container[key] = arr
        elif op == "$pull":
            found = _resolve_parent(doc, path, cursor, create=False)
            if found is None:
                continue
            container, key = found
            arr = _get(container, key)
            if arr is _MISSING:
                continue
            if not isinstance(arr, list):
                raise InvalidUpdateError(f"$pull requires array field: {path}")
            container[key] = [x for x in arr if not _match_value(x, value, [])]


# =========================
# Triggers
# =========================
class Operation(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"

class Phase(str, Enum):
    BEFORE = "before"
    AFTER = "after"

class TriggerResult(Enum):
    PROCEED = "proceed"
    CANCEL = "cancel"

TriggerCallback = Callable[[Operation, Optional[dict], Optional[dict]], Any]

@dataclass(frozen=True, eq=False)
class TriggerRegistration:
    """Handle returned by ``add_trigger``; pass it to ``remove_trigger``."""
    name: str
    operation: Operation
    phase: Phase
    callback: TriggerCallback

class TriggerRegistry:
    """Ordered trigger callbacks keyed by (operation, phase)."""

    def __init__(self):
        self._triggers: Dict[Tuple[Operation, Phase], List[TriggerRegistration]] = {}

    def add_trigger(self, name: str, operation, phase, callback: TriggerCallback) -> TriggerRegistration:
        if not isinstance(name, str) or not name:
            raise TriggerError("Trigger name must be a non-empty string.")
        if not callable(callback):
            raise TriggerError(f"Trigger '{name}' callback is not callable.")
        try:
            operation = Operation(operation)
            phase = Phase(phase)
        except ValueError as e:
            raise TriggerError(f"Trigger '{name}': {e}") from e
        registration = TriggerRegistration(name, operation, phase, callback)
        self._triggers.setdefault((operation, phase), []).append(registration)
        return registration

    def remove_trigger(self, handle_or_name: Union[TriggerRegistration, str]) -> int:
        """Remove one registration by handle, or every registration sharing a name."""
        removed = 0
        for registrations in self._triggers.values():
            if isinstance(handle_or_name, TriggerRegistration):
                kept = [r for r in registrations if r is not handle_or_name]
            else:
                kept = [r for r in registrations if r.name != handle_or_name]
            removed += len(registrations) - len(kept)
            registrations[:] = kept
        return removed

    def triggers_for(self, operation, phase) -> Tuple[TriggerRegistration, ...]:
        return tuple(self._triggers.get((Operation(operation), Phase(phase)), ()))

    def dispatch(self, operation: Operation, phase: Phase, old_data, new_data) -> bool:
        """Run callbacks in registration order; False means a before-trigger cancelled."""
        for registration in self.triggers_for(operation, phase):
            result = registration.callback(operation, old_data, new_data)
            if result is False or result is TriggerResult.CANCEL:
                if phase is Phase.BEFORE:
                    logger.debug("Trigger %r cancelled %s", registration.name, operation.value)
                    return False
                logger.debug("Trigger %r asked to cancel after %s; ignored",
                             registration.name, operation.value)
        return True


# =========================
# Document store
# =========================
class DocumentStore:
    """Documents keyed by identity, in insertion order.

    ``get`` and ``put`` copy, so nothing outside holds a reference into the
    stored documents. ``scan`` hands out the stored objects themselves and is
    for read-only matching.
    """

    def __init__(self):
        self._docs: Dict[Any, dict] = {}

    def __contains__(self, doc_id) -> bool:
        return doc_id in self._docs

    def __len__(self) -> int:
        return len(self._docs)

    def get(self, doc_id) -> Optional[dict]:
        doc = self._docs.get(doc_id)
        return None if doc is None else clone(doc, "document")

    def put(self, doc_id, doc: dict):
        # replacing an existing id keeps its position
        self._docs[doc_id] = clone(doc, "document")

    def delete(self, doc_id) -> bool:
        return self._docs.pop(doc_id, None) is not None

    def clear(self):
        self._docs.clear()

    def scan(self) -> Iterator[Tuple[Any, dict]]:
        for doc_id in list(self._docs):
            doc = self._docs.get(doc_id)
            if doc is not None:
                yield doc_id, doc


# =========================
# Collection
# =========================
def _sort_key(value):
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (1, value)
    if is_number(value):
        return (2, value)
    if isinstance(value, str):
        return (3, value)
    return (4, json.dumps(value, sort_keys=True))

def _sort_docs(docs: List[dict], sort: Optional[List[Tuple[str, int]]]) -> List[dict]:
    for key, direction in reversed(sort or []):
        docs.sort(key=lambda d: _sort_key(deep_get(d, key, None)), reverse=direction < 0)
    return docs

def _project(doc: dict, projection: Optional[dict], id_field: str) -> dict:
    if not projection:
        return doc
    include = [k for k, v in projection.items() if v and k != id_field]
    exclude = [k for k, v in projection.items() if not v]
    if include or not exclude:
        out = {}
        if projection.get(id_field, True) and id_field in doc:
            out[id_field] = doc[id_field]
        for k in include:
            val = deep_get(doc, k, _MISSING)
            if val is not _MISSING:
                deep_set(out, k, val)
        return out
    for k in exclude:
        deep_unset(doc, k)
    return doc


class Collection:
    """A named set of documents with insert/update triggers.

    Not thread-safe: every operation, including the triggers it fires, runs
    to completion on the caller's thread.
    """

    def __init__(self, name: str, config: Optional[CollectionConfig] = None):
        self.name = name
        self.config = config or CollectionConfig()
        self._store = DocumentStore()
        self._triggers = TriggerRegistry()

    # ----- Triggers -----
    def add_trigger(self, name: str, operation, phase, callback: TriggerCallback) -> TriggerRegistration:
        return self._triggers.add_trigger(name, operation, phase, callback)

    def remove_trigger(self, handle_or_name: Union[TriggerRegistration, str]) -> int:
        return self._triggers.remove_trigger(handle_or_name)

    def triggers_for(self, operation, phase) -> Tuple[TriggerRegistration, ...]:
        return self._triggers.triggers_for(operation, phase)

    # ----- Identity -----
    def _identity_of(self, document: dict):
        id_field = self.config.id_field
        doc_id = document.get(id_field, _MISSING)
        if doc_id is _MISSING:
            raise InvalidDocumentError(f"Document is missing identity field '{id_field}'.")
        if isinstance(doc_id, bool) or not isinstance(doc_id, (str, int, float)) or doc_id != doc_id:
            raise InvalidDocumentError(
                f"Identity field '{id_field}' must be a string or number, got {doc_id!r}."
            )
        return doc_id

    def _check_identity_kept(self, old: dict, new: dict):
        id_field = self.config.id_field
        if not values_equal(old.get(id_field), new.get(id_field, _MISSING)):
            raise ImmutableFieldError(
                f"Field '{id_field}' is immutable (document {old.get(id_field)!r})."
            )

    # ----- Insert -----
    def insert(self, document: dict) -> InsertResult:
        if not isinstance(document, dict):
            raise InvalidDocumentError("Document must be a dict.")
        id_field = self.config.id_field
        check_value(document, "document")
        if id_field not in document:
            if not self.config.auto_id:
                raise InvalidDocumentError(f"Document is missing identity field '{id_field}'.")
            document[id_field] = generate_object_id()
        doc_id = self._identity_of(document)
        if doc_id in self._store:
            logger.info("Rejected duplicate %s=%r in collection %s", id_field, doc_id, self.name)
            raise DuplicateKeyError(f"Duplicate {id_field} {doc_id!r} in collection '{self.name}'.")

        if not self._triggers.dispatch(Operation.INSERT, Phase.BEFORE, None, document):
            return InsertResult(doc_id, applied=False)

        # before-triggers may have rewritten the identity
        doc_id = self._identity_of(document)
        if doc_id in self._store:
            logger.info("Rejected duplicate %s=%r in collection %s", id_field, doc_id, self.name)
            raise DuplicateKeyError(f"Duplicate {id_field} {doc_id!r} in collection '{self.name}'.")
        self._store.put(doc_id, document)
        logger.debug("Inserted %s=%r into %s", id_field, doc_id, self.name)

        self._triggers.dispatch(Operation.INSERT, Phase.AFTER, None, self._store.get(doc_id))
        return InsertResult(doc_id)

    def insert_many(self, documents: Iterable[dict]) -> List[InsertResult]:
        return [self.insert(doc) for doc in documents]

    # ----- Find -----
    def _matching_ids(self, query: Optional[dict]) -> List[Any]:
        query = {} if query is None else query
        return [doc_id for doc_id, doc in self._store.scan() if match_query(doc, query) is not None]

    def find(self, query: Optional[dict] = None, projection: Optional[dict] = None,
             sort: Optional[List[Tuple[str, int]]] = None, skip: int = 0, limit: int = 0) -> List[dict]:
        docs = [self._store.get(doc_id) for doc_id in self._matching_ids(query)]
        docs = _sort_docs(docs, sort)
        if skip > 0:
            docs = docs[skip:]
        if limit > 0:
            docs = docs[:limit]
        return [_project(d, projection, self.config.id_field) for d in docs]

    def find_one(self, query: Optional[dict] = None, projection: Optional[dict] = None) -> Optional[dict]:
        docs = self.find(query, projection=projection, limit=1)
        return docs[0] if docs else None

    def count(self, query: Optional[dict] = None) -> int:
        return len(self._matching_ids(query))

    # ----- Update -----
    def update(self, query: dict, changes: dict) -> UpdateResult:
        """Apply ``changes`` to every document matching ``query``.

        Each matched document goes through its own before-triggers, commit and
        after-triggers; a cancel only skips that document.
        """
        if not isinstance(changes, dict):
            raise InvalidUpdateError("Update must be a dict.")
        query = {} if query is None else query
        matched = modified = cancelled = 0
        for doc_id in self._matching_ids(query):
            old = self._store.get(doc_id)
            if old is None:
                continue
            # earlier documents' triggers may have touched this one
            captures = match_query(old, query)
            if captures is None:
                continue
            matched += 1

            proposed = apply_update(old, changes, captures)
            self._check_identity_kept(old, proposed)
            if not self._triggers.dispatch(Operation.UPDATE, Phase.BEFORE, clone(old), proposed):
                cancelled += 1
                continue
            self._check_identity_kept(old, proposed)
            self._store.put(doc_id, proposed)
            modified += 1
            logger.debug("Updated %s=%r in %s", self.config.id_field, doc_id, self.name)

            self._triggers.dispatch(Operation.UPDATE, Phase.AFTER, old, self._store.get(doc_id))
        return UpdateResult(matched_count=matched, modified_count=modified, cancelled_count=cancelled)

    # ----- Delete -----
    def remove(self, query: Optional[dict] = None) -> DeleteResult:
        deleted = cancelled = 0
        for doc_id in self._matching_ids(query):
            old = self._store.get(doc_id)
            if old is None:
                continue
            if not self._triggers.dispatch(Operation.DELETE, Phase.BEFORE, clone(old), None):
                cancelled += 1
                continue
            self._store.delete(doc_id)
            deleted += 1
            logger.debug("Removed %s=%r from %s", self.config.id_field, doc_id, self.name)
            self._triggers.dispatch(Operation.DELETE, Phase.AFTER, old, None)
        return DeleteResult(deleted, cancelled)

    def truncate(self) -> "Collection":
        """Remove every document without firing triggers."""
        logger.debug("Truncating %s (%d documents)", self.name, len(self._store))
        self._store.clear()
        return self

    def __len__(self) -> int:
        return len(self._store)


# =========================
# Database
# =========================
class Database:
    """
    Registry of named collections.
    Usage:
        db = Database()
        coll = db["people"].truncate()
    """
    def __init__(self, config: Optional[CollectionConfig] = None):
        self.config = config
        self.collections: Dict[str, Collection] = {}

    def collection(self, name: str) -> Collection:
        if name not in self.collections:
            self.collections[name] = Collection(name, self.config)
        return self.collections[name]

    def __getitem__(self, name: str) -> Collection:
        return self.collection(name)

    def list_collection_names(self) -> List[str]:
        return list(self.collections.keys())

    def drop_collection(self, name: str) -> bool:
        return self.collections.pop(name, None) is not None

    def truncate_all(self) -> "Database":
        for coll in self.collections.values():
            coll.truncate()
        return self
