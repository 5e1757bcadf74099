"""
宏动作序列的内存模型与编辑逻辑。
"""

__version__ = "0.1.0"
