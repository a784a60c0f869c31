"""
Pytest configuration for unit tests.

Provides sample declaration documents and builders for imported files.
"""

from typing import Dict, List

import pytest

from di_xml_export.config import ExportSettings
from di_xml_export.models import Column, ImportedFile


SAMPLE_DI_XML = """<?xml version="1.0" encoding="UTF-8"?>
<ListaDeclaracoes>
  <declaracaoImportacao>
    <numeroDI>2400000001</numeroDI>
    <adicao>
      <numeroAdicao>001</numeroAdicao>
      <dadosMercadoriaCodigoNcm>84713012</dadosMercadoriaCodigoNcm>
      <condicaoVenda>
        <incoterm>FOB</incoterm>
        <valorMoeda>1500.00</valorMoeda>
      </condicaoVenda>
      <mercadoria>
        <descricaoMercadoria>Notebook</descricaoMercadoria>
        <quantidade>10</quantidade>
      </mercadoria>
      <mercadoria>
        <descricaoMercadoria>Carregador</descricaoMercadoria>
        <quantidade>10</quantidade>
      </mercadoria>
    </adicao>
    <adicao>
      <numeroAdicao>002</numeroAdicao>
      <dadosMercadoriaCodigoNcm>85044010</dadosMercadoriaCodigoNcm>
      <observacao/>
    </adicao>
  </declaracaoImportacao>
</ListaDeclaracoes>
"""


@pytest.fixture
def sample_xml() -> str:
    """Two-item declaration document as text."""
    return SAMPLE_DI_XML


@pytest.fixture
def sample_xml_bytes() -> bytes:
    """Two-item declaration document as UTF-8 bytes."""
    return SAMPLE_DI_XML.encode('utf-8')


@pytest.fixture
def settings() -> ExportSettings:
    """Default settings without reading a local .env file."""
    return ExportSettings(_env_file=None)


def build_file(
    name: str,
    records: List[Dict[str, str]],
    selected: bool = False,
    index: int = 0
) -> ImportedFile:
    """ImportedFile with one column per record key (first-seen order)."""
    keys: List[str] = []
    for record in records:
        keys.extend(k for k in record if k not in keys)
    return ImportedFile(
        name=name,
        records=records,
        columns=[Column(key=k, selected=selected, order=i) for i, k in enumerate(keys)],
        index=index
    )


@pytest.fixture
def make_file():
    """Factory fixture for ImportedFile objects."""
    return build_file
