#!/usr/bin/env python3
from __future__ import annotations

from typing import Any

import pandas as pd
import requests
import streamlit as st

from limitup_pager.config import DEFAULT_MAX_CONSTRAINT, load_settings

UPLOAD_ENDPOINT = "/api/upload"
SUPPORTED_EXTS = [".xlsx", ".xlsm", ".xls", ".ods", ".csv", ".tsv"]
REQUEST_TIMEOUT = 120


def post_upload(api_url: str, filename: str, content: bytes, max_constraint: int) -> tuple[int, dict[str, Any]]:
    """POST the workbook to the pager API; returns (status_code, json body)."""
    response = requests.post(
        api_url.rstrip("/") + UPLOAD_ENDPOINT,
        files={"excelFile": (filename, content)},
        data={"maxConstraint": str(max_constraint)},
        timeout=REQUEST_TIMEOUT,
    )
    try:
        body = response.json()
    except ValueError:
        body = {"error": response.text or f"HTTP {response.status_code}"}
    return response.status_code, body


def resolved_columns_frame(payload: dict[str, Any]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"field": "最终涨停时间", "column": payload.get("finalLimitTimeCol")},
            {"field": "连续涨停天数(天)", "column": payload.get("continuousLimitDaysCol")},
            {"field": "涨停原因", "column": payload.get("limitReasonCol")},
            {"field": "涨停原因类别", "column": payload.get("limitReasonCategoryCol")},
        ]
    )


def stats_frame(payload: dict[str, Any]) -> pd.DataFrame:
    stats = payload.get("categoryStats") or []
    return pd.DataFrame(stats, columns=["category", "count"]).rename(
        columns={"category": "涨停原因", "count": "出现次数"}
    )


def ensure_state() -> None:
    st.session_state.setdefault("result", None)
    st.session_state.setdefault("error", None)


def set_visuals() -> None:
    st.set_page_config(page_title="limitup-pager", page_icon="📈", layout="wide", initial_sidebar_state="collapsed")


def render_result(payload: dict[str, Any]) -> None:
    metrics = st.columns(4)
    metrics[0].metric("Records", payload.get("recordCount", 0))
    metrics[1].metric("Pages", len(payload.get("pages", [])))
    metrics[2].metric("Reasons", len(payload.get("categoryStats", [])))
    metrics[3].metric("maxConstraint", payload.get("maxConstraint", DEFAULT_MAX_CONSTRAINT))

    for warning in payload.get("warnings", []):
        st.warning(warning)
    if payload.get("diagnostics"):
        st.warning(f"{len(payload['diagnostics'])} category cells could not be trimmed and were cleared.")

    left, right = st.columns(2)
    with left:
        st.caption("Original columns")
        st.code(" | ".join(payload.get("originalColumns", [])))
        st.caption("Cleaned columns")
        st.code(" | ".join(payload.get("cleanedColumns", [])))
    with right:
        st.caption("Resolved columns")
        st.dataframe(resolved_columns_frame(payload), width="stretch", hide_index=True)

    st.subheader("Pages")
    for page in payload.get("pages", []):
        label = f"第{page['pageNumber']}页  •  {page['recordCount']} records"
        with st.expander(label, expanded=page["pageNumber"] == 1):
            st.caption(f"Showing the first {len(page['data'])} records")
            st.dataframe(pd.DataFrame(page["data"]), width="stretch", hide_index=True)

    st.subheader("涨停原因统计")
    st.dataframe(stats_frame(payload), width="stretch", hide_index=True)


def main() -> None:
    set_visuals()
    ensure_state()
    settings = load_settings()

    st.title("limitup-pager")
    st.caption("Upload a limit-up export to preview how it will be split into pages.")

    api_url = st.text_input("API URL", value=settings.api_url)
    upload = st.file_uploader("Upload file", type=[ext.lstrip(".") for ext in SUPPORTED_EXTS])
    max_constraint = st.number_input(
        "maxConstraint (2 × reasons + rows per page)",
        min_value=1,
        value=settings.max_constraint,
        step=1,
    )
    submit = st.button("Process", type="primary", disabled=upload is None)

    if submit and upload is not None:
        with st.spinner("Processing…"):
            try:
                status, body = post_upload(api_url, upload.name, upload.getvalue(), int(max_constraint))
            except requests.RequestException as exc:
                status, body = 0, {"error": f"Could not reach {api_url}: {exc}"}
        if status == 200:
            st.session_state["result"] = body
            st.session_state["error"] = None
        else:
            st.session_state["result"] = None
            st.session_state["error"] = body.get("error") or f"HTTP {status}"

    if st.session_state["error"]:
        st.error(st.session_state["error"])
    elif st.session_state["result"]:
        render_result(st.session_state["result"])
    else:
        st.info("Supported: " + " ".join(SUPPORTED_EXTS))


if __name__ == "__main__":
    main()
