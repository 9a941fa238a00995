"""
LC-3 Core Tracer

16bit教育用計算機（LC-3）のエミュレータと命令トレーサ。
"""
__version__ = "0.1.0"
