"""
=====================================================
Comprehensive pytest suite for loader/batch_loader.py
=====================================================

Sections:
---------
1. Unit tests - Discovery, name conflicts, replace pairs, serialization
2. Integration tests - Complete batches against source files
3. Edge case tests - Failing routines, missing files, serialization errors
4. Smoke tests - Basic functionality verification

Available markers:
------------------
unit, integration, edge_case, smoke

Test Coverage:
--------------
BatchLoader:
- find_sources / sources_from_list: Candidate discovery
- detect_name_conflicts: Equally named wrapper methods
- build_replace_pairs: Column type placeholders below configured pairs
- run: Routine name order, failure isolation
- load_all / load_list: Metadata file and overview report
- write_metadata: Idempotent output, SerializationError
serialize_metadata:
- Sorted keys, indentation, trailing newline

How to Execute:
---------------
All tests:          pytest tests/tests_loader/test_batch_loader.py -v
By category:        pytest tests/tests_loader/test_batch_loader.py -m integration
Specific test:      pytest tests/tests_loader/test_batch_loader.py::test_run_duplicate_method_names

Note: Use 'python -m pytest' (not just 'pytest') to ensure correct Python path resolution.
"""

import json
from unittest.mock import patch

import pytest

from loader.batch_loader import BatchLoader, BatchResult, serialize_metadata
from loader.name_mangler import camel_case
from logs.error_handler import SerializationError
from models.routine_models import SourceDescriptor


def routine(designation='none', payload='select 1', return_type=None):
    lines = ["/**", " * Test routine.", " *", f" * @type {designation}"]
    if return_type is not None:
        lines.append(f" * @return {return_type}")
    lines += [" */", payload, ""]
    return '\n'.join(lines)


@pytest.fixture
def batch(sink, scratch, tmp_path):
    """Provide a BatchLoader writing to tmp_path/etc/routines.json."""
    return BatchLoader(sink, scratch, metadata_path=tmp_path / 'etc' / 'routines.json')


# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
def test_find_sources_recursive_and_sorted(batch, write_file, tmp_path):
    """Sources are found recursively and ordered by path."""
    write_file('psql/b/abc_b.psql', routine())
    write_file('psql/a/abc_a.psql', routine())
    write_file('psql/readme.txt', 'not a source')

    sources = batch.find_sources('psql/**/*.psql', tmp_path)

    assert [source.routine_name for source in sources] == ['abc_a', 'abc_b']


@pytest.mark.unit
def test_sources_from_list_missing(batch, sink, write_file, tmp_path):
    """Missing files are reported and returned separately."""
    present = write_file('abc_a.psql', routine())
    missing = str(tmp_path / 'abc_gone.psql')

    sources, failed = batch.sources_from_list([str(present), missing])

    assert [source.routine_name for source in sources] == ['abc_a']
    assert failed == [missing]
    assert sink.of('error_list') == [('error_list', f"File not exists: '{missing}'", [])]


@pytest.mark.unit
def test_detect_name_conflicts(batch, sink):
    """Sources sharing a method name are removed and reported together."""
    sources = [
        SourceDescriptor('a/abc_get.psql', 'abc_get', 'abcGet'),
        SourceDescriptor('b/abc_get.psql', 'abc_get', 'abcGet'),
        SourceDescriptor('c/abc_set.psql', 'abc_set', 'abcSet'),
    ]

    remaining, failed = batch.detect_name_conflicts(sources)

    assert [source.path for source in remaining] == ['c/abc_set.psql']
    assert failed == ['a/abc_get.psql', 'b/abc_get.psql']
    assert sink.of('error_list') == [(
        'error_list',
        "The following source files would result wrapper methods with equal name 'abcGet'",
        ['a/abc_get.psql', 'b/abc_get.psql'],
    )]


@pytest.mark.unit
def test_detect_name_conflicts_without_method_names(batch, sink):
    """Sources without method name never conflict."""
    sources = [SourceDescriptor('a/x.psql', 'x'), SourceDescriptor('b/x.psql', 'x')]

    remaining, failed = batch.detect_name_conflicts(sources)

    assert remaining == sources
    assert failed == []
    assert sink.calls == []


@pytest.mark.unit
def test_build_replace_pairs_configured_pairs_win(sink, scratch):
    """Configured pairs override column type placeholders of the same name."""
    scratch.tables = {'t': [('id', 'INTEGER'), ('name', 'TEXT')]}
    batch = BatchLoader(sink, scratch, replace_pairs={'t.id%type': 'BIGINT', 'schema': 'main'})

    assert batch.build_replace_pairs() == {
        '@T.ID%TYPE@': 'BIGINT',
        '@T.NAME%TYPE@': 'TEXT',
        '@SCHEMA@': 'main',
    }


@pytest.mark.unit
def test_serialize_metadata_format(batch, write_source):
    """The document is indented, has sorted keys and ends with a newline."""
    result = batch.run([write_source('abc_a.psql', routine())])

    document = serialize_metadata(result.metadata)

    assert document.endswith('}\n')
    assert document.startswith('{\n    "abc_a": {\n        "designation": "none",')
    assert json.loads(document)['abc_a'] == {
        'routine_name': 'abc_a',
        'designation': 'none',
        'return': None,
        'parameters': [],
        'documentation': {
            'short_description': 'Test routine.',
            'long_description': '',
            'parameters': [],
        },
        'offset': 5,
        'source': 'select 1\n',
    }


# ======================
# 2. INTEGRATION TESTS
# ======================

@pytest.mark.integration
def test_run_routine_name_order(batch, sink, write_source):
    """Routines are loaded in routine name order whatever the input order."""
    sources = [
        write_source('c/abc_c.psql', routine()),
        write_source('a/abc_a.psql', routine()),
        write_source('b/abc_b.psql', routine()),
    ]

    result = batch.run(sources)

    assert list(result.metadata) == ['abc_a', 'abc_b', 'abc_c']
    assert [call[1] for call in sink.of('text')] == [
        ['Loading routine abc_a'],
        ['Loading routine abc_b'],
        ['Loading routine abc_c'],
    ]


@pytest.mark.integration
def test_run_failure_isolation(batch, sink, write_source):
    """A failing routine is reported and does not abort the batch."""
    good = write_source('abc_good.psql', routine())
    bad = write_source('abc_bad.psql', routine('row2'))

    result = batch.run([good, bad])

    assert list(result.metadata) == ['abc_good']
    assert result.failed_paths == [bad.path]
    assert not result.succeeded
    assert (
        'error_list',
        "'row2' is not a valid designation type",
        [f"Failed to load file '{bad.path}'"],
    ) in sink.calls


@pytest.mark.integration
def test_run_duplicate_method_names(sink, scratch, write_source):
    """Routines mapping onto one wrapper method are not loaded."""
    first = write_source('a/abc_get_user.psql', routine(), camel_case)
    second = write_source('b/abc_get_user.psql', routine(), camel_case)
    other = write_source('a/abc_set_user.psql', routine(), camel_case)

    result = BatchLoader(sink, scratch, mangler=camel_case).run([first, second, other])

    assert list(result.metadata) == ['abc_set_user']
    assert result.failed_paths == [first.path, second.path]


@pytest.mark.integration
def test_load_all_idempotent_output(batch, write_file, tmp_path):
    """Loading the same sources twice gives a byte-identical metadata file."""
    write_file('psql/abc_b.psql', routine('rows'))
    write_file('psql/abc_a.psql', routine('singleton1', return_type='int'))

    batch.load_all('psql/*.psql', tmp_path)
    first = batch.metadata_path.read_bytes()
    batch.load_all('psql/*.psql', tmp_path)

    assert batch.metadata_path.read_bytes() == first
    assert batch.write_metadata(batch.run(batch.find_sources('psql/*.psql', tmp_path)).metadata) is False


@pytest.mark.integration
def test_load_list_overview(batch, sink, write_file, tmp_path):
    """Failed sources are listed in the overview warning."""
    good = write_file('abc_good.psql', routine())
    missing = str(tmp_path / 'abc_gone.psql')

    result = batch.load_list([str(good), missing])

    assert list(result.metadata) == ['abc_good']
    assert result.failed_paths == [missing]
    assert sink.calls[-1] == (
        'warning_list', 'Routines in the files below are not loaded:', [missing]
    )
    assert 'abc_good' in json.loads(batch.metadata_path.read_text(encoding='utf-8'))


@pytest.mark.integration
def test_load_all_real_scratch_column_types(sink, write_file, tmp_path):
    """Column type placeholders come from a real scratch database."""
    from utils.database_utils import SqliteScratchDatabase

    write_file('psql/abc_len.psql', routine(
        'singleton1',
        payload="select cast(:p_name as @abc_user.usr_name%type@)",
        return_type='string'
    ).replace(' * @type', ' * @param @abc_user.usr_name%type@ :p_name The name.\n * @type'))

    with SqliteScratchDatabase() as scratch:
        scratch.execute_statement("create table abc_user (usr_name varchar(32))")
        batch = BatchLoader(sink, scratch, metadata_path=tmp_path / 'routines.json')
        result = batch.load_all('psql/*.psql', tmp_path)

    metadata = result.metadata['abc_len']
    assert metadata.source == "select cast(:p_name as varchar(32))\n"
    assert metadata.documentation.parameters[0].description == 'The name.'


# =====================
# 3. EDGE CASE TESTS
# =====================

@pytest.mark.edge_case
def test_load_all_no_sources(batch, sink, tmp_path):
    """An empty batch writes an empty document and reports nothing."""
    result = batch.load_all('psql/*.psql', tmp_path)

    assert result == BatchResult()
    assert batch.metadata_path.read_text(encoding='utf-8') == '{}\n'
    assert sink.of('warning_list') == []


@pytest.mark.edge_case
def test_write_metadata_serialization_error(batch, write_file):
    """A serialization failure leaves the metadata file untouched."""
    write_file('etc/routines.json', 'previous')

    with patch('loader.batch_loader.metadata_to_dict', return_value={'x': float('nan')}):
        with pytest.raises(SerializationError):
            batch.write_metadata({})

    assert batch.metadata_path.read_text(encoding='utf-8') == 'previous'


@pytest.mark.edge_case
def test_write_metadata_without_path(sink, scratch):
    """Without metadata file nothing is written."""
    assert BatchLoader(sink, scratch).write_metadata({}) is False


# ================
# 4. SMOKE TESTS
# ================

@pytest.mark.smoke
def test_batch_result_succeeded():
    """A batch without failed paths succeeded."""
    assert BatchResult().succeeded
    assert not BatchResult(failed_paths=['x']).succeeded
