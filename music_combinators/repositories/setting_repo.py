# music_combinators/repositories/setting_repo.py
from sqlmodel import Session, select

from music_combinators.models.setting import AppSetting


class SettingRepository:
    """Data access layer for the admin settings table."""

    def list_all(self, session: Session) -> list[AppSetting]:
        return session.exec(select(AppSetting)).all()

    def upsert_many(self, session: Session, values: dict[str, str]) -> None:
        for key, value in values.items():
            row = session.get(AppSetting, key)
            if row is None:
                row = AppSetting(key=key, value=value)
            else:
                row.value = value
            session.add(row)
        session.commit()
