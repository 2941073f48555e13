"""
Test output handler functionality for JSON and CSV formats.
"""
import csv
import json
import pytest

from photo_captions.core.output_handler import OutputHandler


@pytest.fixture
def test_data():
    """Sample records for testing"""
    return [
        {
            'url': 'https://example.com/a.jpg',
            'file': 'a.jpg',
            'categories': ['ciudad', 'noche'],
            'category': 'ciudad',
            'caption': 'Calle iluminada, con "faroles" y lluvia',
            'footer': 'Noche en Santiago',
            'footer_en': 'Night in Santiago',
            'stars': 0,
            'portfolio': False,
            'visible': True,
            'camera': 'Canon EOS R5',
        },
        {
            'url': 'https://example.com/b.jpg',
            'file': 'b.jpg',
            'categories': [],
            'category': 'unknown',
            'caption': 'description unavailable',
            'footer': '',
            'footer_en': '',
            'stars': 0,
            'portfolio': False,
            'visible': True,
        },
    ]


def test_json_export(test_data, tmp_path):
    output_path = tmp_path / 'captions.json'
    OutputHandler().save_to_json(test_data, output_path)

    text = output_path.read_text(encoding='utf-8')
    assert json.loads(text) == test_data
    assert '\n  {' in text
    assert 'Calle iluminada' in text


def test_csv_export(test_data, tmp_path):
    output_path = tmp_path / 'captions.csv'
    OutputHandler().save_to_csv(test_data, output_path)

    with open(output_path, newline='', encoding='utf-8') as f:
        rows = list(csv.DictReader(f))

    assert list(rows[0]) == ['file', 'categories', 'category', 'caption', 'footer', 'footer_en']
    assert rows[0]['categories'] == 'ciudad|noche'
    assert rows[0]['caption'] == 'Calle iluminada, con "faroles" y lluvia'
    assert rows[1]['categories'] == ''
    assert rows[1]['category'] == 'unknown'
    assert len(rows) == 2


def test_output_directory_creation(test_data, tmp_path):
    output_path = tmp_path / 'nested' / 'dir' / 'captions.json'
    OutputHandler().save(test_data, output_path, 'json')
    assert output_path.exists()


def test_empty_results(tmp_path):
    handler = OutputHandler()
    handler.save([], tmp_path / 'empty.json', 'json')
    handler.save([], tmp_path / 'empty.csv', 'csv')

    assert json.loads((tmp_path / 'empty.json').read_text()) == []
    assert (tmp_path / 'empty.csv').read_text().strip() == 'file,categories,category,caption,footer,footer_en'


def test_unsupported_format(test_data, tmp_path):
    with pytest.raises(ValueError):
        OutputHandler().save(test_data, tmp_path / 'out.xml', 'xml')


def test_write_failure_propagates(test_data, tmp_path):
    blocker = tmp_path / 'file'
    blocker.write_text('not a directory')
    with pytest.raises(OSError):
        OutputHandler().save_to_json(test_data, blocker / 'captions.json')
