"""
HTTP 接口处理函数
每个处理函数签名为 handler(context, board, **路径参数)
"""
