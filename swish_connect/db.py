import aiosqlite
from pathlib import Path

from .settings import settings

DB_FILE = settings.DB_FILE

INIT_SQL = '''
CREATE TABLE IF NOT EXISTS payment_requests (
    id TEXT PRIMARY KEY,                    -- 32-char hex id from PUT /paymentrequests/{id}
    location TEXT NOT NULL,                 -- Swish status URL
    payment_request_token TEXT,             -- m-commerce only
    payee_payment_reference TEXT,
    status TEXT,
    status_code INTEGER
);
CREATE INDEX IF NOT EXISTS ix_payment_requests_reference ON payment_requests(payee_payment_reference);
'''

_COLUMNS = ("id", "location", "payment_request_token", "payee_payment_reference", "status", "status_code")


async def init_db():
    Path(DB_FILE).parent.mkdir(parents=True, exist_ok=True)
    async with aiosqlite.connect(DB_FILE) as db:
        for stmt in INIT_SQL.strip().split(';'):
            s = stmt.strip()
            if s:
                await db.execute(s + ';')
        await db.commit()


async def upsert_payment_request(
    id: str,
    location: str,
    status: str | None = None,
    status_code: int | None = None,
    payment_request_token: str | None = None,
    payee_payment_reference: str | None = None,
):
    async with aiosqlite.connect(DB_FILE) as db:
        await db.execute(
            """
            INSERT INTO payment_requests (id, location, payment_request_token, payee_payment_reference, status, status_code)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
              location=excluded.location,
              payment_request_token=COALESCE(excluded.payment_request_token, payment_requests.payment_request_token),
              payee_payment_reference=COALESCE(excluded.payee_payment_reference, payment_requests.payee_payment_reference),
              status=COALESCE(excluded.status, payment_requests.status),
              status_code=COALESCE(excluded.status_code, payment_requests.status_code)
            """,
            (id, location, payment_request_token, payee_payment_reference, status, status_code)
        )
        await db.commit()


async def get_payment_request_record(id: str):
    async with aiosqlite.connect(DB_FILE) as db:
        async with db.execute(
            f"SELECT {', '.join(_COLUMNS)} FROM payment_requests WHERE id = ?",
            (id,)
        ) as cur:
            row = await cur.fetchone()
    if not row:
        return None
    return dict(zip(_COLUMNS, row))


async def update_status(id: str, status: str, status_code: int):
    async with aiosqlite.connect(DB_FILE) as db:
        await db.execute(
            "UPDATE payment_requests SET status=?, status_code=? WHERE id=?",
            (status, status_code, id)
        )
        await db.commit()
