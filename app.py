import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Tuple

import gradio as gr
import pandas as pd

from officecode.batch import frame_stats, process_frame
from officecode.normalization import NormalizationCache
from officecode.reference import ReferenceTable, load_reference

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

REFERENCE_ENV = "OFFICECODE_REFERENCE"


def _to_input_path(file_obj) -> str:
    return file_obj.name if hasattr(file_obj, "name") else str(file_obj)


def _default_reference_path() -> Path:
    env = os.environ.get(REFERENCE_ENV)
    if env:
        return Path(env)
    return Path(__file__).resolve().parent / "code.json"


def _load_table(ref_file_obj, cache: NormalizationCache) -> ReferenceTable:
    ref_path = Path(_to_input_path(ref_file_obj)) if ref_file_obj else _default_reference_path()
    # ReferenceDataError наследует ValueError -> gradio покажет текст ошибки
    return load_reference(ref_path, cache)


def process(
    file_obj,
    ref_file_obj,
    col_office: str,
    col_address: str,
    col_equipment: str,
    suggestions: float,
) -> Tuple[str, Dict[str, Any]]:
    if file_obj is None:
        raise ValueError("Загрузите файл с заявками (.xlsx)")

    address_cols = [c for c in (col_office, col_address) if c and str(c).strip()]
    if not address_cols:
        raise ValueError("Укажите хотя бы одну адресную колонку")

    # свой кеш на каждый запуск: справочник мог поменяться
    cache = NormalizationCache()
    table = _load_table(ref_file_obj, cache)
    logger.info("Reference loaded: %d offices", len(table))

    df_in = pd.read_excel(_to_input_path(file_obj))
    out_df = process_frame(
        df_in,
        table,
        address_cols=address_cols,
        equipment_col=col_equipment or None,
        suggestions=int(suggestions),
        cache=cache,
    )

    with tempfile.NamedTemporaryFile(delete=False, suffix=".xlsx") as tmp:
        out_path = tmp.name
    out_df.to_excel(out_path, index=False)

    return out_path, frame_stats(out_df)


# ---------------- UI ----------------
with gr.Blocks() as demo:
    gr.Markdown(
        "### Определение офиса и типа устройства по заявкам\n"
        "1) Загрузите `.xlsx` с заявками\n"
        "2) (необязательно) загрузите справочник офисов: `.json` (`code` / `addresses`), `.csv` или `.xlsx` (`code` / `address`)\n"
        "3) Укажите **точные имена колонок** во входном файле\n"
        "4) Нажмите **Обработать** и скачайте результат: `in_*` + `out_office_code` + `out_device_type` + "
        "`stage` + `candidates` + `log` (JSON)"
    )

    file_in = gr.File(label="Заявки (.xlsx)", file_types=[".xlsx"])
    ref_in = gr.File(label="Справочник офисов (по умолчанию code.json)", file_types=[".json", ".csv", ".xlsx"])

    gr.Markdown("#### Сопоставление колонок входного файла")
    col_office = gr.Textbox(label="Наименование поля: Офис или адрес", value="customfield_11120")
    col_address = gr.Textbox(label="Наименование поля: Адрес офиса", value="customfield_10994")
    col_equipment = gr.Textbox(label="Наименование поля: Оборудование", value="customfield_11122")

    with gr.Accordion("Расширенные настройки", open=False):
        gr.Markdown(
            """
            Для строк с результатом `ХЗ` в колонку `candidates` пишутся ближайшие офисы
            (fuzzy-похожесть нормализованного адреса). На выбор кода это не влияет.
            """
        )
        ui_suggestions = gr.Slider(0, 10, value=3, step=1, label="Сколько кандидатов показывать для ХЗ")

    btn = gr.Button("Обработать", variant="primary")
    file_out = gr.File(label="Выходной файл (.xlsx)")
    stats = gr.JSON(label="Статистика выполнения")

    btn.click(
        process,
        inputs=[file_in, ref_in, col_office, col_address, col_equipment, ui_suggestions],
        outputs=[file_out, stats],
    )

demo.queue()

if __name__ == "__main__":
    demo.launch()
