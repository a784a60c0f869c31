"""
Unit tests for XML parsing and flattening.
"""

import pytest
from lxml import etree

from di_xml_export.config import ExportSettings
from di_xml_export.exceptions import ParseError
from di_xml_export.parsers import RecordParser, parse_records, load_xml_root, flatten_item


class TestLoadXmlRoot:
    """Test suite for load_xml_root()."""
    
    def test_parses_text(self, sample_xml):
        """Should parse text even when it declares an encoding."""
        root = load_xml_root(sample_xml)
        
        assert root.tag == 'ListaDeclaracoes'
    
    def test_parses_bytes(self, sample_xml_bytes):
        root = load_xml_root(sample_xml_bytes)
        
        assert root.tag == 'ListaDeclaracoes'
    
    def test_falls_back_to_latin1(self):
        """Should retry with fallback encodings after an encoding error."""
        content = '<a><b>Açúcar</b></a>'.encode('iso-8859-1')
        
        root = load_xml_root(content, fallback_encodings=['iso-8859-1'])
        
        assert root.find('b').text == 'Açúcar'
    
    def test_honours_declared_encoding(self):
        """Should decode bytes according to the XML declaration."""
        content = '<?xml version="1.0" encoding="ISO-8859-1"?><a>Descrição</a>'.encode('iso-8859-1')
        
        root = load_xml_root(content, fallback_encodings=[])
        
        assert root.text == 'Descrição'
    
    @pytest.mark.parametrize('content', [
        '<a><b></a>',
        '<a>',
        '',
        'not xml at all',
    ])
    def test_malformed_raises_parse_error(self, content):
        """Should raise ParseError for malformed documents."""
        with pytest.raises(ParseError):
            load_xml_root(content)
    
    def test_error_mentions_source(self):
        """ParseError should carry the source file name."""
        with pytest.raises(ParseError) as exc_info:
            load_xml_root(b'<a><b></a>', source_name='DI_001.xml')
        
        assert exc_info.value.source == 'DI_001.xml'
        assert 'DI_001.xml' in str(exc_info.value)


class TestFlattenItem:
    """Test suite for flatten_item()."""
    
    def test_scalar_children(self):
        """Scalar children contribute tag → text."""
        item = etree.fromstring('<adicao><ncm>84713012</ncm><numero>001</numero></adicao>')
        
        assert flatten_item(item) == {'ncm': '84713012', 'numero': '001'}
    
    def test_nested_children_use_dot_paths(self):
        """Structured children contribute parent.child → text, recursively."""
        item = etree.fromstring(
            '<adicao><fornecedor><nome>ACME</nome>'
            '<endereco><cidade>Lyon</cidade></endereco></fornecedor></adicao>'
        )
        
        assert flatten_item(item) == {
            'fornecedor.nome': 'ACME',
            'fornecedor.endereco.cidade': 'Lyon',
        }
    
    def test_repeated_children_are_joined(self):
        """Repeated sibling tags contribute one field joined with ', '."""
        item = etree.fromstring(
            '<adicao><destaque>1</destaque><destaque>2</destaque><destaque>3</destaque></adicao>'
        )
        
        assert flatten_item(item) == {'destaque': '1, 2, 3'}
    
    def test_repeated_structured_children_are_joined_per_field(self):
        item = etree.fromstring(
            '<adicao>'
            '<mercadoria><descricao>A</descricao><qtd>1</qtd></mercadoria>'
            '<mercadoria><descricao>B</descricao></mercadoria>'
            '</adicao>'
        )
        
        assert flatten_item(item) == {
            'mercadoria.descricao': 'A, B',
            'mercadoria.qtd': '1',
        }
    
    def test_custom_separator(self):
        item = etree.fromstring('<adicao><d>1</d><d>2</d></adicao>')
        
        assert flatten_item(item, separator=' | ') == {'d': '1 | 2'}
    
    def test_attributes_are_merged(self):
        """Item and child attributes become fields."""
        item = etree.fromstring(
            '<adicao Numero="1"><valor moeda="USD">10.5</valor></adicao>'
        )
        
        assert flatten_item(item) == {
            'numero': '1',
            'valor': '10.5',
            'valor.moeda': 'USD',
        }
    
    def test_names_are_lowercased(self):
        """Foo and foo should produce one field."""
        item = etree.fromstring('<adicao><CodigoNCM>1</CodigoNCM></adicao>')
        
        assert list(flatten_item(item)) == ['codigoncm']
    
    def test_case_variants_are_one_repeated_field(self):
        item = etree.fromstring('<adicao><Foo>1</Foo><foo>2</foo></adicao>')
        
        assert flatten_item(item) == {'foo': '1, 2'}
    
    def test_empty_text_is_empty_string(self):
        """Missing text should yield '' (never None)."""
        item = etree.fromstring('<adicao><observacao/><x>  </x></adicao>')
        
        assert flatten_item(item) == {'observacao': '', 'x': ''}
    
    def test_namespaces_are_stripped(self):
        item = etree.fromstring('<adicao xmlns="urn:di"><ncm>1</ncm></adicao>')
        
        assert flatten_item(item) == {'ncm': '1'}
    
    def test_space_artifact_is_cleaned(self):
        """Siscomex '#x20;' artifacts should become spaces."""
        item = etree.fromstring('<adicao><nome>ACME#x20;LTDA</nome></adicao>')
        
        assert flatten_item(item) == {'nome': 'ACME LTDA'}
    
    def test_attribute_and_child_with_same_name_keep_both(self):
        """Should join both values instead of overwriting the attribute."""
        item = etree.fromstring('<adicao ncm="A"><ncm>B</ncm></adicao>')
        
        assert flatten_item(item) == {'ncm': 'A, B'}
    
    def test_dotted_tag_and_nested_path_keep_both(self):
        item = etree.fromstring('<adicao><a.b>X</a.b><a><b>Y</b></a></adicao>')
        
        assert flatten_item(item) == {'a.b': 'X, Y'}
    
    def test_key_collision_uses_custom_separator(self):
        item = etree.fromstring('<adicao ncm="A"><ncm>B</ncm></adicao>')
        
        assert flatten_item(item, separator=' | ') == {'ncm': 'A | B'}


class TestRecordParser:
    """Test suite for RecordParser.parse()."""
    
    def test_one_record_per_item(self, sample_xml, settings):
        """Should return one record per matched item node."""
        records = RecordParser(settings).parse(sample_xml)
        
        assert len(records) == 2
    
    def test_sample_record_content(self, sample_xml_bytes, settings):
        records = RecordParser(settings).parse(sample_xml_bytes)
        
        assert records[0] == {
            'numeroadicao': '001',
            'dadosmercadoriacodigoncm': '84713012',
            'condicaovenda.incoterm': 'FOB',
            'condicaovenda.valormoeda': '1500.00',
            'mercadoria.descricaomercadoria': 'Notebook, Carregador',
            'mercadoria.quantidade': '10, 10',
        }
        assert records[1] == {
            'numeroadicao': '002',
            'dadosmercadoriacodigoncm': '85044010',
            'observacao': '',
        }
    
    def test_declaration_fields_are_not_records(self, sample_xml, settings):
        """Only item nodes produce records."""
        records = RecordParser(settings).parse(sample_xml)
        
        assert all('numerodi' not in r for r in records)
    
    def test_items_across_declarations(self, settings):
        """Items from every declaration are returned in document order."""
        xml = (
            '<ListaDeclaracoes>'
            '<declaracaoImportacao><adicao><n>1</n></adicao></declaracaoImportacao>'
            '<declaracaoImportacao><adicao><n>2</n></adicao><adicao><n>3</n></adicao></declaracaoImportacao>'
            '</ListaDeclaracoes>'
        )
        
        records = RecordParser(settings).parse(xml)
        
        assert [r['n'] for r in records] == ['1', '2', '3']
    
    def test_root_can_be_the_declaration(self, settings):
        xml = '<declaracaoImportacao><adicao><n>1</n></adicao></declaracaoImportacao>'
        
        assert RecordParser(settings).parse(xml) == [{'n': '1'}]
    
    def test_zero_field_records_are_dropped(self, settings):
        """Empty item elements should not produce records."""
        xml = (
            '<ListaDeclaracoes><declaracaoImportacao>'
            '<adicao><n>1</n></adicao><adicao/><adicao>   </adicao>'
            '</declaracaoImportacao></ListaDeclaracoes>'
        )
        
        records = RecordParser(settings).parse(xml)
        
        assert records == [{'n': '1'}]
    
    def test_declaration_without_items_yields_no_records(self, settings):
        xml = '<ListaDeclaracoes><declaracaoImportacao><numeroDI>1</numeroDI></declaracaoImportacao></ListaDeclaracoes>'
        
        assert RecordParser(settings).parse(xml) == []
    
    def test_unrecognized_structure_raises(self, settings):
        """Documents without declaration elements should raise ParseError."""
        with pytest.raises(ParseError, match="Unrecognized document structure"):
            RecordParser(settings).parse('<catalogo><livro>x</livro></catalogo>')
    
    def test_declarations_only_at_known_depth(self, settings):
        """Declarations nested deeper than the root's children are not located."""
        xml = '<a><b><declaracaoImportacao><adicao><n>1</n></adicao></declaracaoImportacao></b></a>'
        
        with pytest.raises(ParseError):
            RecordParser(settings).parse(xml)
    
    def test_configurable_tag_patterns(self):
        """Declaration/item tags should come from settings."""
        settings = ExportSettings(
            _env_file=None,
            declaration_tags=['nota*'],
            item_tags=['det']
        )
        xml = '<lote><notaFiscal><det><prod>X</prod></det><det><prod>Y</prod></det></notaFiscal></lote>'
        
        records = RecordParser(settings).parse(xml)
        
        assert records == [{'prod': 'X'}, {'prod': 'Y'}]
    
    def test_parse_records_wrapper(self, sample_xml, settings):
        assert parse_records(sample_xml, settings) == RecordParser(settings).parse(sample_xml)
