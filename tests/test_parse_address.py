import pandas as pd
import pytest

from data_pipeline import parse_address
from data_pipeline.parse_address import MalformedAddress, ParsedAddress, parse, split_address_column


def test_parse_returns_fields_in_order():
    assert parse('123 Main St.;Springfield;IL;62704') == ParsedAddress(
        street='123 Main St.', city='Springfield', state='IL', zip='62704'
    )


def test_parse_trims_each_segment():
    address = parse('  10 Elm St. ;  Metropolis ; NY ;10001  ')

    assert address.street == '10 Elm St.'
    assert address.city == 'Metropolis'
    assert address.state == 'NY'
    assert address.zip == '10001'


@pytest.mark.parametrize('raw', [
    '10 Elm St.;Metropolis;NY',
    '10 Elm St.;Metropolis;NY;10001;USA',
    'bad address',
])
def test_parse_rejects_wrong_segment_count(raw):
    with pytest.raises(MalformedAddress, match='segments'):
        parse(raw)


def test_parse_rejects_blank_segment():
    with pytest.raises(MalformedAddress, match='city'):
        parse('10 Elm St.;  ;NY;10001')


def test_parse_rejects_non_string():
    with pytest.raises(MalformedAddress):
        parse(None)


def test_malformed_address_is_a_value_error():
    assert issubclass(MalformedAddress, ValueError)


def test_split_address_column(roster_df):
    split_df = split_address_column(roster_df)

    assert split_df.loc[0, 'street'] == '123 Main St.'
    assert split_df.loc[1, 'city'] == 'Metropolis'
    assert split_df.loc[1, 'zip'] == '10001'
    assert split_df.loc[2, ['street', 'city', 'state', 'zip']].isna().all()
    assert 'street' not in roster_df.columns


def test_split_address_column_handles_missing_values():
    df = pd.DataFrame({'student_id': [1], 'address': [None]})

    assert split_address_column(df)['state'].isna().all()


def test_main_prints_atomic_fields(raw_dir, monkeypatch, capsys):
    monkeypatch.setattr(parse_address, 'RAW_DATA_BASE_PATH', str(raw_dir))

    with pytest.raises(SystemExit) as exc:
        parse_address.main()

    out = capsys.readouterr().out
    assert exc.value.code == 0
    assert 'Springfield' in out
    assert '[WARNING] student: 1 address(es) could not be split' in out
