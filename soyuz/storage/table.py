import datetime
import typing as t

from sqlalchemy import Index, MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, MappedAsDataclass
from sqlalchemy.types import JSON

from soyuz.model import AssessmentID, AssessmentStatus, AssessmentType, UserID

from .type import ShortUUIDKeyType, UTCDateTime, value_enum

metadata = MetaData()


class base(MappedAsDataclass, DeclarativeBase):
    metadata = metadata
    type_annotation_map = {
        AssessmentID: ShortUUIDKeyType(AssessmentID),
        UserID: ShortUUIDKeyType(UserID),
        AssessmentType: value_enum(AssessmentType, "assessment_type"),
        AssessmentStatus: value_enum(AssessmentStatus, "assessment_status"),
        datetime.datetime: UTCDateTime(),
        dict[str, t.Any]: JSON(),
    }


class assessments(base):
    __tablename__ = "assessments"
    __table_args__ = (Index("ix_assessments_user_status_update", "user_id", "status", "update_time"),)

    assessment_id: Mapped[AssessmentID] = mapped_column(primary_key=True)
    user_id: Mapped[UserID] = mapped_column(index=True)
    type: Mapped[AssessmentType]
    status: Mapped[AssessmentStatus]
    create_time: Mapped[datetime.datetime]
    update_time: Mapped[datetime.datetime]
    disc_results: Mapped[dict[str, t.Any] | None] = mapped_column(default=None)
    soft_skills_results: Mapped[dict[str, t.Any] | None] = mapped_column(default=None)
    sjt_results: Mapped[dict[str, t.Any] | None] = mapped_column(default=None)
    progress_data: Mapped[dict[str, t.Any] | None] = mapped_column(default=None)
    completed_at: Mapped[datetime.datetime | None] = mapped_column(default=None)
