from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, func

from timetracker.database import Base

END_AFTER_START_CONSTRAINT = "ck_entries_end_after_start"
END_AFTER_START_EXPRESSION = "end_time > start_time"


class Entry(Base):
    __tablename__ = "entries"
    __table_args__ = (
        CheckConstraint(END_AFTER_START_EXPRESSION, name=END_AFTER_START_CONSTRAINT),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)

    project = Column(String(255), nullable=False, index=True)
    notes = Column(String(1000), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), nullable=False)
