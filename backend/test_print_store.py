from ingest import ingest_rows
from print_store import main


def test_prints_participants_and_attendance_counts(store, data_file, capsys):
    ingest_rows([
        {'P.No': 'P1', 'Mobile No': '1', 'Name': 'Asha', 'Trade': 'Welding', 'Gender': 'F',
         'Attendance Day 1': 'P', 'Attendance Day 2': 'A'},
        {'P.No': 'P2', 'Mobile No': '2', 'Name': 'Ravi', 'Trade': 'Fitter', 'Gender': 'M',
         'Attendance Day 1': 'P', 'Attendance Day 2': 'P'},
    ], store)

    main(data_file)
    out = capsys.readouterr().out

    assert "('P1', '1', 'Asha', 'Welding', 'F', 'P', 'A')" in out
    assert 'Day 1: 2 present, 0 absent' in out
    assert 'Day 2: 1 present, 1 absent' in out


def test_empty_data_file(data_file, capsys):
    main(data_file)
    out = capsys.readouterr().out
    assert 'Day 1: 0 present, 0 absent' in out
