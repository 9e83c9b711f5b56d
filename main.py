"""
入口转发

本项目为可复用的包与 CLI：
  - 包名: wifi_heatmap_server
  - CLI: wifi-heatmap-server

此文件仅用于兼容 `python main.py` 的运行方式，会转发到 `wifi_heatmap_server.cli:main`。
"""

import sys

from wifi_heatmap_server.cli import main as _cli_main


def main():
    sys.exit(_cli_main())


if __name__ == "__main__":  # pragma: no cover
    main()
