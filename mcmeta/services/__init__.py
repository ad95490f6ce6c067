"""服务层: 输出仓库、输出写入、服务容器与流水线编排"""
