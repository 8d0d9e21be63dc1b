"""Spreadsheet (Excel workbook) editing."""

from __future__ import annotations

from typing import Any

from .base import CapabilityBinding
from .models import CellValue, RangeValues, SheetNames, WriteResult


class Spreadsheet(CapabilityBinding):
    namespace = "excel"

    async def sheet_names(self, path: str) -> list[str]:
        result = await self._call_json("getSheetNames", SheetNames, path)
        return result.sheets

    async def read_cell(self, path: str, sheet: str, cell: str) -> str:
        result = await self._call_json("readCell", CellValue, path, sheet, cell)
        return result.value

    async def read_range(self, path: str, sheet: str, cell_range: str) -> list[list[Any]]:
        result = await self._call_json("readRange", RangeValues, path, sheet, cell_range)
        return result.data

    async def create_workbook(self, path: str) -> WriteResult:
        return await self._call_json("createWorkbook", WriteResult, path)

    async def write_cell(self, path: str, sheet: str, cell: str, value: Any) -> WriteResult:
        return await self._call_json("writeCell", WriteResult, path, sheet, cell, str(value))

    async def write_range(
        self, path: str, sheet: str, start_cell: str, values: list[list[str]]
    ) -> WriteResult:
        """Write a row-major matrix of strings starting at *start_cell*."""
        return await self._call_json("writeRange", WriteResult, path, sheet, start_cell, values)

    async def add_sheet(self, path: str, sheet: str) -> WriteResult:
        return await self._call_json("addSheet", WriteResult, path, sheet)

    async def create_chart(
        self,
        path: str,
        sheet: str,
        data_range: str,
        chart_type: str,
        title: str,
        left=None,
        top=None,
        width=None,
        height=None,
    ) -> str:
        return await self._call(
            "createChart",
            path,
            sheet,
            data_range,
            chart_type,
            title,
            left,
            top,
            width,
            height,
        )

    async def insert_picture(
        self, path: str, sheet: str, image_path: str, left=None, top=None, width=None, height=None
    ) -> str:
        return await self._call(
            "insertPicture", path, sheet, image_path, left, top, width, height
        )

    async def set_column_width(self, path: str, sheet: str, columns: str, width: float) -> str:
        return await self._call("setColumnWidth", path, sheet, columns, width)

    async def set_row_height(self, path: str, sheet: str, rows: str, height: float) -> str:
        return await self._call("setRowHeight", path, sheet, rows, height)
