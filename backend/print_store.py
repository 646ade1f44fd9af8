import sys

from config import get_config
from participant_store import ParticipantStore


def main(data_file=None):
    store = ParticipantStore(data_file or get_config().data_file)
    store.load()
    participants = store.all()

    print('Participants:')
    for p in participants:
        print('  ', (p['p_no'], p['mobile_no'], p['name'], p['trade'], p['gender'],
                     p['attendance_day1'], p['attendance_day2']))

    print('\nAttendance:')
    for day, field in (('Day 1', 'attendance_day1'), ('Day 2', 'attendance_day2')):
        present = sum(1 for p in participants if p.get(field) == 'P')
        print('  ', f"{day}: {present} present, {len(participants) - present} absent")


if __name__ == '__main__':
    main(sys.argv[1] if len(sys.argv) > 1 else None)
