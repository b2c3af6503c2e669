#!/usr/bin/env python3
"""
Generates sample-data/limitup_sample.xlsx, a small limit-up export shaped
like the real vendor downloads.

Run from the repo root:
    python sample-data/generate_xlsx.py

Quirks baked in:
  - Date-stamped headers: "最终涨停时间2024.03.15", "涨停原因类别2024.03.15"
  - A padded header: " 涨停原因 "
  - A "涨停原因揭秘2024.03.15" disclosure column that must not be exported
  - "其他概念" rows that must land on the last pages
  - A long "+"-joined category that needs trimming
  - A blank 连续涨停天数 cell
"""

from pathlib import Path
import openpyxl

OUTPUT = Path(__file__).parent / "limitup_sample.xlsx"

wb = openpyxl.Workbook()
ws = wb.active
ws.title = "涨停池"

ws.append([
    "股票代码",
    "股票简称",
    "最终涨停时间2024.03.15",
    "连续涨停天数(天)2024.03.15",
    " 涨停原因 ",
    "涨停原因类别2024.03.15",
    "涨停原因揭秘2024.03.15",
])

reasons = ["算力", "机器人", "低空经济", "其他概念"]
categories = [
    "算力+数据中心+液冷服务器",
    "人形机器人+减速器",
    "低空经济+无人机+通用航空+飞行汽车+空管系统+eVTOL+航空发动机",
    "业绩预增",
]
for i in range(60):
    reason_idx = (i * 7) % len(reasons) if i % 5 else 0
    days = "" if i == 17 else (i % 6) + 1
    ws.append([
        f"{600000 + i:06d}.SH",
        f"样本{i:02d}",
        f"09:{25 + (i % 30):02d}:00",
        days,
        reasons[reason_idx],
        categories[reason_idx],
        f"公告解读 {i}",
    ])

wb.save(OUTPUT)
print(f"Created: {OUTPUT}")
