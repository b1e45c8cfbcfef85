# portal_vendas/services/sales_data.py
"""Monthly sales goal rows per channel, stored in the sales_monthly_data table."""
import uuid
import logging
from datetime import date
from typing import Dict, List, Optional, Tuple

from services.sales_calculations import UserEntry
from services.storage_gateway import StorageGateway, utc_now_iso

logger = logging.getLogger(__name__)

SALES_KIND = "sales_monthly_data"
SALES_UNIQUE_COLUMNS = ["user_id", "canal", "ano", "mes"]

# channel key -> sector label shown on screen
CHANNELS = {
    "consumo": "Consumo",
    "revenda": "Revenda",
    "cozinhas": "Cozinhas Industriais",
}

MONTH_NAMES_PT = [
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
]

# Seed rows used the first time the current month of a channel is opened empty
DEMO_DATA = {
    "consumo": [
        ("c1", "Renata", 65, 280000), ("c2", "Andrey", 67, 150000), ("c3", "Glaucia", 66, 50000),
        ("c4", "Amadeu", "", 20000), ("c5", "Aparecido", "", 20000), ("c6", "Luiz", "", 20000),
        ("c7", "Carlos", "", 20000), ("c8", "Abilio", "", 20000),
    ],
    "revenda": [
        ("r1", "Marcio", 18, 300000), ("r2", "Sergio", 19, 100000), ("r3", "Jose Geraldo", 22, 50000),
        ("r4", "Fernanda", 63, 200000), ("r5", "Glaucia", 66, 50000),
    ],
    "cozinhas": [
        ("i1", "Livia - Sodexo", 16, 450000), ("i2", "Marcelo - GRSA", 17, 400000), ("i3", "Sapore", 3, 340000),
    ],
}


def demo_entries(canal: str) -> List[UserEntry]:
    return [
        UserEntry(id=user_id, name=name, code=code, sector=CHANNELS[canal],
                  monthly_goal=goal, realized_amount=0, open_orders_amount=0)
        for user_id, name, code, goal in DEMO_DATA.get(canal, [])
    ]


def current_year_month(today: Optional[date] = None) -> Tuple[int, int]:
    today = today or date.today()
    return today.year, today.month


def format_month_year(ano: int, mes: int) -> str:
    """'março de 2025', as pt-BR long month formatting prints it."""
    return f"{MONTH_NAMES_PT[mes - 1]} de {ano}"


def previous_month(ano: int, mes: int) -> Tuple[int, int]:
    return (ano - 1, 12) if mes == 1 else (ano, mes - 1)


def next_month(ano: int, mes: int) -> Tuple[int, int]:
    return (ano + 1, 1) if mes == 12 else (ano, mes + 1)


def _to_number(value):
    if value in (None, ""):
        return 0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def row_to_user_entry(row: Dict) -> UserEntry:
    return UserEntry(
        id=str(row.get("user_id")),
        name=row.get("nome", ""),
        code=row.get("codigo") if row.get("codigo") is not None else "",
        sector=row.get("setor", ""),
        monthly_goal=_to_number(row.get("meta_mensal")),
        realized_amount=_to_number(row.get("valor_realizado")),
        open_orders_amount=_to_number(row.get("pedidos_em_aberto")),
    )


def user_entry_to_row(user: UserEntry, canal: str, ano: int, mes: int) -> Dict:
    return {
        "user_id": user.id,
        "nome": user.name,
        "codigo": str(user.code),
        "setor": user.sector,
        "canal": canal,
        "meta_mensal": user.monthly_goal,
        "valor_realizado": user.realized_amount,
        "pedidos_em_aberto": user.open_orders_amount,
        "ano": ano,
        "mes": mes,
        "updated_at": utc_now_iso(),
    }


def new_entry_id(canal: str, ano: int, mes: int) -> str:
    return f"{canal}-{ano}{mes}-{uuid.uuid4().hex[:9]}"


class SalesDataRepository:
    """
    Reads and writes the monthly rows of one storage gateway. When a fallback
    gateway is given, a failed call on the primary is repeated once on it.
    """

    def __init__(self, storage: StorageGateway, fallback: Optional[StorageGateway] = None):
        self.storage = storage
        self.fallback = fallback

    def _period_filter(self, canal, ano, mes):
        return {"canal": canal, "ano": ano, "mes": mes}

    def _list(self, storage, filters):
        return storage.list_entities(SALES_KIND, filters=filters, order_by="created_at")

    def load_sales_data(self, canal: str, ano: int, mes: int) -> List[UserEntry]:
        filters = self._period_filter(canal, ano, mes)
        rows = self._list(self.storage, filters)
        if rows is None and self.fallback is not None:
            logger.warning(f"Erro ao carregar dados de vendas de {canal} {mes}/{ano}; usando armazenamento local.")
            rows = self._list(self.fallback, filters)
        return [row_to_user_entry(row) for row in rows or []]

    def load_month(self, canal: str, ano: int, mes: int, today: Optional[date] = None) -> List[UserEntry]:
        """Loads a month, seeding the demo people when it is the current month and still empty."""
        entries = self.load_sales_data(canal, ano, mes)
        if not entries and (ano, mes) == current_year_month(today):
            seed = demo_entries(canal)
            if seed and self.save_all_sales_data(seed, canal, ano, mes):
                logger.info(f"Seeded {len(seed)} demo entries for {canal} {mes}/{ano}.")
                return seed
        return entries

    def has_data_for_month(self, canal: str, ano: int, mes: int) -> bool:
        rows = self._list(self.storage, self._period_filter(canal, ano, mes))
        return bool(rows)

    def _upsert(self, storage, users, canal, ano, mes):
        rows = [user_entry_to_row(user, canal, ano, mes) for user in users]
        result = storage.upsert_entities(SALES_KIND, rows, on_conflict=SALES_UNIQUE_COLUMNS)
        if not result.success:
            logger.error(f"Erro ao salvar dados de vendas de {canal} {mes}/{ano}: {result.error}")
        return result.success

    def save_sales_user(self, user: UserEntry, canal: str, ano: int, mes: int) -> bool:
        """Inserts or updates one person's row for the month (unique on user_id, canal, ano, mes)."""
        if self._upsert(self.storage, [user], canal, ano, mes):
            return True
        if self.fallback is not None:
            logger.warning(f"Salvando dados de vendas de {user.id} no armazenamento local.")
            return self._upsert(self.fallback, [user], canal, ano, mes)
        return False

    def save_all_sales_data(self, users: List[UserEntry], canal: str, ano: int, mes: int) -> bool:
        if not users:
            return True
        return self._upsert(self.storage, users, canal, ano, mes)

    def delete_sales_user(self, user_id: str, canal: str, ano: int, mes: int) -> bool:
        filters = dict(self._period_filter(canal, ano, mes), user_id=user_id)
        rows = self.storage.list_entities(SALES_KIND, filters=filters)
        if rows is None:
            logger.error(f"Erro ao excluir usuário {user_id}: falha ao consultar o mês.")
            return False
        for row in rows:
            result = self.storage.delete_entity(SALES_KIND, row["id"])
            if not result.success:
                logger.error(f"Erro ao excluir usuário {user_id}: {result.error}")
                return False
        return True

    def initialize_new_month(self, canal: str, from_ano: int, from_mes: int, to_ano: int, to_mes: int) -> List[UserEntry]:
        """Copies a month's people into another month with new ids and realized/open orders zeroed."""
        previous = self.load_sales_data(canal, from_ano, from_mes)
        new_entries = [
            UserEntry(
                id=new_entry_id(canal, to_ano, to_mes),
                name=user.name,
                code=user.code,
                sector=user.sector,
                monthly_goal=user.monthly_goal,
                realized_amount=0,
                open_orders_amount=0,
            )
            for user in previous
        ]
        if new_entries:
            self.save_all_sales_data(new_entries, canal, to_ano, to_mes)
        return new_entries

    def list_available_months(self, canal: str) -> List[Tuple[int, int]]:
        """Distinct (ano, mes) pairs that hold data for the channel, newest first."""
        rows = self.storage.list_entities(SALES_KIND, filters={"canal": canal}) or []
        months = {(int(row["ano"]), int(row["mes"])) for row in rows}
        return sorted(months, key=lambda period: period[0] * 100 + period[1], reverse=True)
