"""mcmeta - Minecraft 版本/加载器元数据同步与生成"""

__version__ = "0.1.0"
