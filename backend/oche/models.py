from oche import db
import json


class SaveSlot(db.Model):
    """One named save slot holding a serialized game snapshot."""
    __tablename__ = 'save_slot'
    id = db.Column(db.Integer, primary_key=True)
    slot = db.Column(db.String(64), unique=True, nullable=False, index=True)
    payload = db.Column(db.Text, nullable=False)  # JSON-encoded snapshot
    updated_at = db.Column(db.Float, nullable=True)

    def to_dict(self):
        try:
            data = json.loads(self.payload) if self.payload else None
        except ValueError:
            data = None
        return {
            'id': self.id,
            'slot': self.slot,
            'payload': data,
            'updated_at': self.updated_at,
        }
