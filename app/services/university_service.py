from app.core.database import Database


async def list_universities(db: Database) -> list[dict]:
    return await db.fetch_all("SELECT id, name FROM htht_university ORDER BY name ASC")
