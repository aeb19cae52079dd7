"""
小区建言板后端
运行在 Appwrite Function 上，也可通过 board.devserver 在本地启动
"""
__version__ = '1.0.0'
