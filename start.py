# start.py
import uvicorn
import os

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD") == "1",
        # 频道注册表在进程内存里，只能单进程
        workers=1,
        loop="asyncio",
        timeout_keep_alive=75,  # 避免WebSocket频繁断开
        limit_concurrency=200,
        backlog=2048,
    )
