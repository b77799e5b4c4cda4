"""
集成测试（integration tests）

说明：
- 该目录下的测试只访问本地临时 HTTP server（127.0.0.1），不依赖外网。
- 走真实的 urllib 请求链路：changelog 拉取、版本落盘、webhook 投递。
"""
