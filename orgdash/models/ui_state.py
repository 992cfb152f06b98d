"""UIStateRecord model for persisted dashboard preferences"""

from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime
from orgdash.config.database import Base


class UIStateRecord(Base):
    """
    Key-value row for persisted UI state

    One row per namespaced storage key; the value is a JSON document.
    """
    __tablename__ = "ui_state"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)

    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<UIStateRecord {self.key}>"
