"""Простое неотменяемое ожидание."""

import asyncio


async def wait(ms: float) -> None:
    """Ждёт ms миллисекунд.

    Нулевая или отрицательная длительность завершается на следующем
    проходе цикла событий. Ошибок не выбрасывает.

    Args:
        ms: Длительность в миллисекундах.
    """
    await asyncio.sleep(max(ms, 0) / 1000)
