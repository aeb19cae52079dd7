"""
本地开发服务器
FastAPI 接收 /api/* 请求，转换为与 Appwrite 运行时一致的 context 后交给 dispatch
"""
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import Response
from loguru import logger
from starlette.concurrency import run_in_threadpool

from board.app import Board, create_board, dispatch
from board.config import Config, configure_logging
from board.http import LocalContext, LocalRequest

API_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS']


def create_app(board: Board) -> FastAPI:
    app = FastAPI(title="Community Advice Board", version="1.0.0")

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "backend": board.config.KV_BACKEND}

    @app.api_route("/api/{path:path}", methods=API_METHODS)
    async def forward(path: str, request: Request):
        body = await request.body()
        local_request = LocalRequest(
            method=request.method,
            path=request.url.path,
            body=body.decode('utf-8') if body else '',
            headers=dict(request.headers),
            query=dict(request.query_params),
        )
        # 处理函数是同步的（可能发起短信 HTTP 请求），放到线程池执行
        result = await run_in_threadpool(dispatch, board, LocalContext(local_request))
        return Response(
            content=result['body'],
            status_code=result['statusCode'],
            headers=result['headers'],
        )

    return app


def run():
    """加载 .env 后启动 uvicorn"""
    load_dotenv()
    config = Config()
    configure_logging(config.LOG_LEVEL)
    config.validate()

    logger.info("启动建言板开发服务器...")
    logger.info(f"监听地址: {config.API_HOST}:{config.API_PORT}")
    logger.info(f"存储后端: {config.KV_BACKEND}")

    import uvicorn
    uvicorn.run(
        create_app(create_board(config)),
        host=config.API_HOST,
        port=config.API_PORT,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
