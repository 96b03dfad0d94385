from datetime import datetime
from app import db


class Setting(db.Model):
    """Local configuration store (endpoint locations, last author, entry draft)."""
    __tablename__ = 'settings'

    RECORD_SOURCE_URL = 'record_source_url'
    APPEND_ENDPOINT_URL = 'append_endpoint_url'
    LAST_AUTHOR = 'last_author'
    ENTRY_DRAFT = 'entry_draft'

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(50), unique=True, nullable=False)
    value = db.Column(db.Text, nullable=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Setting {self.key}={self.value}>'

    @classmethod
    def get(cls, key: str, default=None):
        """Get a setting value by key."""
        setting = cls.query.filter_by(key=key).first()
        return setting.value if setting else default

    @classmethod
    def set(cls, key: str, value: str):
        """Set a setting value."""
        setting = cls.query.filter_by(key=key).first()
        if setting:
            setting.value = value
        else:
            setting = cls(key=key, value=value)
            db.session.add(setting)
        db.session.commit()
        return setting

    @classmethod
    def clear(cls, key: str):
        """Remove a setting so the environment default applies again."""
        cls.query.filter_by(key=key).delete()
        db.session.commit()
