"""Record model and in-memory record management.

The store persists the whole list on every save; this layer only edits
the list and projects filtered views of it for display.
"""
from __future__ import annotations
import uuid
from dataclasses import dataclass, field, fields, asdict
from typing import Any, Dict, Iterable, List, Optional

class RecordError(Exception): ...

def new_id() -> str:
	return str(uuid.uuid4())

@dataclass
class Record:
	id: str = field(default_factory=new_id)
	site: str = ''
	url: str = ''
	username: str = ''
	email: str = ''
	secret: str = ''
	notes: str = ''

	def to_dict(self) -> Dict[str, str]:
		return asdict(self)

	@classmethod
	def from_dict(cls, raw: Dict[str, Any]) -> 'Record':
		"""Build a record from a decoded payload object, repairing it.

		Missing or empty ids get a fresh one; None becomes '' and other
		scalars are stringified. Unknown keys are dropped.
		"""
		values = {}
		for f in fields(cls):
			v = raw.get(f.name)
			if v is None:
				v = ''
			elif not isinstance(v, str):
				v = str(v)
			values[f.name] = v
		if not values['id']:
			values['id'] = new_id()
		return cls(**values)

EDITABLE_FIELDS = ('site', 'url', 'username', 'email', 'secret', 'notes')
SEARCH_FIELDS = ('site', 'username', 'email', 'url')

def filter_records(records: Iterable[Record], query: str | None) -> List[Record]:
	"""Case-insensitive substring match on site, username, email and url."""
	if not query or not query.strip():
		return list(records)
	q = query.casefold()
	return [r for r in records if any(q in getattr(r, f).casefold() for f in SEARCH_FIELDS)]

class RecordManager:
	def __init__(self, records: Optional[List[Record]] = None):
		self.records: List[Record] = records if records is not None else []

	def add(self, **values: str) -> Record:
		self._check_fields(values)
		rec = Record(**{k: v or '' for k, v in values.items()})
		self.records.append(rec)
		return rec

	def get(self, record_id: str) -> Optional[Record]:
		for r in self.records:
			if r.id == record_id:
				return r
		return None

	def update(self, record_id: str, **values: Optional[str]) -> Record:
		"""Set the given fields in place; None leaves a field unchanged."""
		self._check_fields(values)
		rec = self.get(record_id)
		if rec is None:
			raise RecordError('Record not found')
		for k, v in values.items():
			if v is not None:
				setattr(rec, k, v)
		return rec

	def delete(self, record_id: str) -> Record:
		rec = self.get(record_id)
		if rec is None:
			raise RecordError('Record not found')
		self.records.remove(rec)
		return rec

	def search(self, query: str | None) -> List[Record]:
		return filter_records(self.records, query)

	@staticmethod
	def _check_fields(values: Dict[str, Any]) -> None:
		bad = set(values) - set(EDITABLE_FIELDS)
		if bad:
			raise RecordError(f"Unknown field(s): {', '.join(sorted(bad))}")
