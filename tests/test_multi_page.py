import pytest

from paperstruct.models import TableFragment
from paperstruct.detection.caption_matcher import detect_table_captions
from paperstruct.tables.multi_page import (
    TableMergeError,
    analyze_multi_page_tables,
    detect_multi_page_tables,
    fragment_from_caption,
    get_multi_page_table_stats,
    group_tables_by_number,
    is_continuation_caption,
    match_tables_with_captions,
    merge_multi_page_tables,
    merge_tables,
)


@pytest.mark.parametrize("caption, expected", [
    ("Table 1 (continued)", (True, '1')),
    ("Table 3 (cont'd)", (True, '3')),
    ("Table 2 - Continued", (True, '2')),
    ("Table A1 (continued)", (True, 'A1')),
    ("Table 1: Baseline characteristics", (False, None)),
    ("", (False, None)),
])
def test_is_continuation_caption(caption, expected):
    assert is_continuation_caption(caption) == expected


def test_group_files_continuations_under_original(split_table):
    grouped = group_tables_by_number(split_table)

    assert list(grouped) == ['1', '2']
    assert [f.page_number for f in grouped['1']] == [3, 4]
    assert grouped['1'][1].is_continuation
    assert grouped['1'][1].original_table_number == '1'
    assert not grouped['1'][0].is_continuation


def test_group_does_not_mutate_input():
    fragment = TableFragment(table_number="7", page_number=9, caption="Table 2 - Continued",
                             is_continuation=False)

    grouped = group_tables_by_number([fragment])

    assert list(grouped) == ['2']
    assert grouped['2'][0].is_continuation
    assert fragment.is_continuation is False
    assert fragment.original_table_number is None


def test_group_ignores_stale_continuation_flag():
    fragment = TableFragment(table_number="4", page_number=2, caption="Table 4: Labs",
                             is_continuation=True, original_table_number="3")

    grouped = group_tables_by_number([fragment])

    assert list(grouped) == ['4']
    assert grouped['4'][0].is_continuation is False


def test_merge_two_pages(split_table):
    merged = merge_tables(group_tables_by_number(split_table)['1'])

    assert merged.table_number == '1'
    assert merged.page_number == 3
    assert merged.caption == "Table 1: Baseline characteristics"
    assert merged.row_count == 8
    assert merged.page_numbers == [3, 4]
    assert merged.rows[0] == ["Age", "54"]
    assert merged.rows[5] == ["HR", "72"]
    assert merged.is_continuation is False


def test_merge_orders_by_page(split_table):
    main, continuation = split_table[0], split_table[1]

    merged = merge_tables([continuation, main])

    assert merged.page_numbers == [3, 4]
    assert merged.rows[0] == ["Age", "54"]
    assert merged.caption == main.caption


def test_merge_single_fragment_is_identity(split_table):
    single = split_table[2]

    assert merge_tables([single]) is single


def test_merge_empty_raises():
    with pytest.raises(TableMergeError):
        merge_tables([])

    with pytest.raises(ValueError):
        merge_tables([])


def test_merge_does_not_mutate_inputs(split_table):
    rows_before = [list(r) for r in split_table[0].rows]

    merged = merge_tables(split_table[:2])
    merged.rows.append(["extra", "row"])

    assert split_table[0].rows == rows_before
    assert split_table[0].page_numbers == [3]


def test_merge_sums_declared_row_counts():
    first = TableFragment(table_number="3", page_number=1, row_count=10)
    second = TableFragment(table_number="3", page_number=2, row_count=4)

    merged = merge_tables([first, second])

    assert merged.row_count == 14
    assert merged.rows == []


def test_detect_multi_page_tables(split_table):
    tables = detect_multi_page_tables(split_table)

    assert len(tables) == 1
    table = tables[0]
    assert table.total_pages == 2
    assert table.main_table.page_number == 3
    assert [c.page_number for c in table.continuations] == [4]
    assert table.merged_table.row_count == 8


def test_orphaned_group_is_flagged():
    fragments = [
        TableFragment(table_number="5", page_number=6, caption="Table 5 (continued)", rows=[["a"]]),
        TableFragment(table_number="5", page_number=7, caption="Table 5 (continued)", rows=[["b"]]),
    ]

    detection = analyze_multi_page_tables(fragments)

    assert detection.tables == []
    assert detection.orphaned_groups == ['5']
    assert detection.has_issues
    assert "No main table found for table 5" in detection.warnings[0]
    assert detect_multi_page_tables(fragments) == []


def test_merge_multi_page_tables(split_table):
    merged = merge_multi_page_tables(split_table)

    assert [t.table_number for t in merged] == ['1', '2']
    assert merged[0].row_count == 8
    assert merged[1].row_count == 1
    assert merged[1].page_numbers == [5]


def test_multi_page_stats(split_table):
    stats = get_multi_page_table_stats(split_table)

    assert stats['total_tables'] == 3
    assert stats['logical_tables'] == 2
    assert stats['multi_page_tables'] == 1
    assert stats['single_page_tables'] == 1
    assert stats['max_pages_spanned'] == 2
    assert stats['avg_rows_per_table'] == pytest.approx(3.0)


def test_fragment_from_caption_keeps_supplementary_apart():
    captions = detect_table_captions("Table 1: Main\nTable S1: Extra")

    main = fragment_from_caption(captions[0], 2, [["a"]])
    supplementary = fragment_from_caption(captions[1], 9, [["b"]])

    grouped = group_tables_by_number([main, supplementary])

    assert list(grouped) == ['1', 'S1']
    assert detect_multi_page_tables([main, supplementary]) == []


def test_match_tables_with_captions():
    captions = detect_table_captions("Table 1: Main\nTable 1 (continued)")
    tables = [{'page_number': 1, 'rows': []}, {'page_number': 2, 'rows': []}, {'page_number': 3, 'rows': []}]

    matches = match_tables_with_captions(tables, captions)

    assert [m['confidence'] for m in matches] == [0.9, 0.8, 0.5]
    assert matches[2]['caption'] is None


def test_orphaned_group_is_not_merged():
    fragments = [
        TableFragment(table_number="5", page_number=6, caption="Table 5 (continued)", rows=[["a"]]),
        TableFragment(table_number="5", page_number=7, caption="Table 5 (continued)", rows=[["b"]]),
        TableFragment(table_number="6", page_number=8, caption="Table 6: Labs", rows=[["c"]]),
    ]

    merged = merge_multi_page_tables(fragments)

    assert [(t.table_number, t.page_number, t.is_continuation) for t in merged] == [
        ('5', 6, True),
        ('5', 7, True),
        ('6', 8, False),
    ]
    assert all(t.original_table_number == '5' for t in merged[:2])


def test_online_continuation_groups_with_its_main_table():
    assert is_continuation_caption("eTable 1 (continued)") == (False, None)

    fragments = [
        TableFragment(table_number="e1", page_number=2, caption="eTable 1: Online data", rows=[["a"]]),
        TableFragment(table_number="e1", page_number=3, caption="eTable 1 (continued)", rows=[["b"]]),
        TableFragment(table_number="1", page_number=4, caption="Table 1: Main", rows=[["c"]]),
    ]

    grouped = group_tables_by_number(fragments)

    assert list(grouped) == ['e1', '1']
    assert [f.page_number for f in grouped['e1']] == [2, 3]
