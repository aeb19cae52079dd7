"""
Appwrite Function 入口
所有 /api/* 请求由同一个函数按路径分发
"""
from typing import Optional

from board.app import Board, create_board, dispatch
from board.config import Config, configure_logging

_board: Optional[Board] = None


def get_board() -> Board:
    """首次调用时按环境变量创建 Board，之后复用"""
    global _board
    if _board is None:
        config = Config()
        configure_logging(config.LOG_LEVEL)
        config.validate()
        _board = create_board(config)
    return _board


def main(context):
    try:
        board = get_board()
    except ValueError as e:
        context.error(f'[INIT] 配置错误: {str(e)}')
        return context.res.json({'error': '服务配置错误'}, 500)
    return dispatch(board, context)
