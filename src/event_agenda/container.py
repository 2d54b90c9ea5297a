from __future__ import annotations

from dataclasses import dataclass

from .agenda.mysql_agenda_repository import MySQLAgendaRepository
from .agenda.service import AgendaCatalog
from .checkins.mysql_checkin_repository import MySQLCheckInRepository
from .checkins.service import CheckInLedger
from .database.connection import DBConfig, DatabaseConnection


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    agenda_repo: MySQLAgendaRepository
    checkins_repo: MySQLCheckInRepository

    catalog: AgendaCatalog
    ledger: CheckInLedger


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    agenda_repo = MySQLAgendaRepository(conn)
    checkins_repo = MySQLCheckInRepository(conn)

    catalog = AgendaCatalog(agenda_repo)
    ledger = CheckInLedger(checkins_repo, catalog)

    return Container(
        conn=conn,
        agenda_repo=agenda_repo,
        checkins_repo=checkins_repo,
        catalog=catalog,
        ledger=ledger,
    )
