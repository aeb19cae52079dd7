"""
短信验证码模块
"""
