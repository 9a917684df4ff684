from __future__ import annotations

from ..models import Setting


class SettingRepository:
    def __init__(self, session):
        self.session = session

    def list(self) -> list[Setting]:
        return self.session.query(Setting).order_by(Setting.key.asc()).all()

    def get(self, key: str) -> Setting | None:
        return self.session.query(Setting).filter_by(key=key).first()

    def get_many(self, keys) -> dict[str, Setting]:
        rows = self.session.query(Setting).filter(Setting.key.in_(list(keys))).all()
        return {row.key: row for row in rows}

    def add(self, setting: Setting) -> Setting:
        self.session.add(setting)
        self.session.flush()
        return setting
