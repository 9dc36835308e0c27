"""
Shared fixtures for the dashboard pipeline tests.

Provides small in-memory CSV datasets and a dataset file on disk.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from ipca_dashboard.parser import parse_records


HEADER = "DATA,ANO,MES,Gasolina_Preco,IPCA_Mensal,IPCA_Acumulado,LAG_0"

SAMPLE_ROWS = [
    "2024-11-01,2024,11,6.12,0.39,4.87,0.0116",
    "2024-12-01,2024,12,6.18,0.52,4.83,0.0098",
    "2025-01-01,2025,1,5.00,0.16,0.16,",
    "2025-02-01,2025,2,5.20,1.31,1.47,0.0400",
    "2025-03-01,2025,3,5.10,0.56,2.04,-0.0192",
    "2025-10-01,2025,10,6.41,0.09,4.50,0.0048",
    "2025-11-01,2025,11,6.45,0.30,4.81,0.0062",
    "2025-12-01,2025,12,6.47,0.35,5.18,0.0031",
    "2026-01-01,2026,1,6.50,0.40,0.40,0.0046",
]


def make_csv(rows, header=HEADER):
    return "\n".join([header] + list(rows)) + "\n"


@pytest.fixture()
def sample_text():
    return make_csv(SAMPLE_ROWS)


@pytest.fixture()
def sample_records(sample_text):
    return parse_records(sample_text)


@pytest.fixture()
def q1_2025_text():
    """Three valid rows for Jan/Feb/Mar 2025."""
    return make_csv(SAMPLE_ROWS[2:5])


@pytest.fixture()
def dataset_file(tmp_path, sample_text):
    path = tmp_path / "data.csv"
    path.write_text(sample_text, encoding="utf-8")
    return path
