import datetime

from dungeonforge import db
from dungeonforge.layout.serialization import deserialize, serialize, tree_from_jsonable, tree_to_jsonable


def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


class LayoutRecord(db.Model):
    __tablename__ = 'layout_records'
    id = db.Column(db.Integer, primary_key=True)
    map_id = db.Column(db.String(128), unique=True, nullable=False, index=True)
    seed = db.Column(db.BigInteger, nullable=False)
    config = db.Column(db.JSON, default=dict)
    # Serialized map tree (blobs stored as {"$bytes": ...})
    payload = db.Column(db.JSON, nullable=False)
    overall_score = db.Column(db.Float)
    violation_count = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    @classmethod
    def from_result(cls, result, config=None, report=None):
        """Build an unsaved record from a GenerationResult (and optional QualityReport)."""
        return cls(
            map_id=result.layout.id,
            seed=result.seed,
            config=config.to_dict() if config is not None else {},
            payload=tree_to_jsonable(serialize(result.layout)),
            overall_score=report.overall if report is not None else None,
            violation_count=len(result.violations),
        )

    def to_layout(self):
        return deserialize(tree_from_jsonable(self.payload), strict=False)

    def __repr__(self):
        return f'<LayoutRecord {self.map_id} seed={self.seed}>'
