from __future__ import annotations

import argparse
import json
import logging
import sys

from .config_manager import ConfigManager
from .exceptions import HeatmapError, StorageError
from .models import MeasurementRequest, MeasurementType
from .service import HeatmapService

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _service(args) -> HeatmapService:
    service = HeatmapService(ConfigManager(args.config))
    service.start()
    return service


def cmd_measure(args):
    service = _service(args)
    request = MeasurementRequest(
        lat=args.lat,
        lng=args.lng,
        floor=args.floor,
        location=args.location,
        type=MeasurementType.parse(args.type),
        samples=args.samples,
        interval=args.interval,
    )
    record = service.record_measurement(request, interface=args.interface)
    _print_json(record.to_dict())


def cmd_list(args):
    service = _service(args)
    _print_json([m.to_dict() for m in service.list_measurements(args.floor)])


def cmd_delete(args):
    service = _service(args)
    service.delete_measurement(args.id)
    _print_json({"status": "deleted"})


def cmd_export(args):
    service = _service(args)
    text = service.export_csv(args.floor)
    if args.output:
        with open(args.output, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        logger.info("已导出到 %s", args.output)
    else:
        sys.stdout.write(text)


def cmd_floors_list(args):
    service = _service(args)
    _print_json([f.to_dict() for f in service.list_floors()])


def cmd_floors_add(args):
    service = _service(args)
    _print_json(service.add_floor({"name": args.name}).to_dict())


def cmd_upload_map(args):
    service = _service(args)
    with open(args.file, "rb") as f:
        path = service.upload_map(args.floor_id, f, args.file)
    _print_json({"status": "success", "path": path})


def cmd_sampler(args):
    config = ConfigManager(args.config)
    current = config.get_sampler_config()
    if args.interface is not None or args.samples is not None or args.interval_ms is not None:
        config.set_sampler_config(
            args.interface if args.interface is not None else current["interface"],
            args.samples if args.samples is not None else current["samples"],
            args.interval_ms if args.interval_ms is not None else current["interval_ms"],
        )
    _print_json(config.get_sampler_config())


def cmd_resolve(args):
    service = _service(args)
    asset = service.get_map(args.path)
    _print_json({"path": asset.path, "contentType": asset.content_type, "size": len(asset.data)})


def main(argv=None):
    parser = argparse.ArgumentParser(prog="wifi-heatmap-server", description="WiFi Heatmap Server CLI")
    parser.add_argument("--config", default=None, help="配置文件路径，默认读取 ./config/config.yaml 或环境变量 WIFI_HEATMAP_CONFIG")
    parser.add_argument("--log-level", default="INFO", help="日志级别")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_measure = sub.add_parser("measure", help="采样当前信号强度并新增一条测量")
    p_measure.add_argument("--lat", type=float, required=True)
    p_measure.add_argument("--lng", type=float, required=True)
    p_measure.add_argument("--floor", type=int, required=True)
    p_measure.add_argument("--location", default="")
    p_measure.add_argument("--type", default="location", choices=[t.value for t in MeasurementType])
    p_measure.add_argument("--samples", type=int, default=0, help="采样次数，<=0 时使用配置 sampler.samples")
    p_measure.add_argument("--interval", type=int, default=0, help="采样间隔（毫秒），<=0 时使用配置 sampler.interval_ms")
    p_measure.add_argument("--interface", default=None, help="无线网卡名，默认读取配置")
    p_measure.set_defaults(func=cmd_measure)

    p_list = sub.add_parser("list", help="列出测量记录")
    p_list.add_argument("--floor", default=None)
    p_list.set_defaults(func=cmd_list)

    p_delete = sub.add_parser("delete", help="按 id 删除测量记录")
    p_delete.add_argument("id")
    p_delete.set_defaults(func=cmd_delete)

    p_export = sub.add_parser("export", help="导出 CSV")
    p_export.add_argument("--floor", default=None)
    p_export.add_argument("--output", "-o", default=None)
    p_export.set_defaults(func=cmd_export)

    p_floors = sub.add_parser("floors", help="楼层管理")
    floors_sub = p_floors.add_subparsers(dest="floors_cmd", required=True)
    p_floors_list = floors_sub.add_parser("list")
    p_floors_list.set_defaults(func=cmd_floors_list)
    p_floors_add = floors_sub.add_parser("add")
    p_floors_add.add_argument("name")
    p_floors_add.set_defaults(func=cmd_floors_add)

    p_upload = sub.add_parser("upload-map", help="上传楼层平面图")
    p_upload.add_argument("floor_id")
    p_upload.add_argument("file")
    p_upload.set_defaults(func=cmd_upload_map)

    p_sampler = sub.add_parser("sampler", help="查看或修改采样默认配置")
    p_sampler.add_argument("--interface", default=None)
    p_sampler.add_argument("--samples", type=int, default=None, help="请求未指定时的采样次数")
    p_sampler.add_argument("--interval-ms", type=int, default=None, help="请求未指定时的采样间隔（毫秒）")
    p_sampler.set_defaults(func=cmd_sampler)

    p_resolve = sub.add_parser("resolve", help="解析 /uploads/ 路径到磁盘文件")
    p_resolve.add_argument("path")
    p_resolve.set_defaults(func=cmd_resolve)

    args = parser.parse_args(argv)
    setup_logging(args.log_level)
    try:
        args.func(args)
    except StorageError as e:
        logger.error("存储错误: %s", e)
        return 1
    except HeatmapError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
