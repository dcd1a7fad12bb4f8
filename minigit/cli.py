import argparse
import os
import sys
import textwrap

from . import data
from . import base
from .errors import MinigitError, NothingStaged


def main(argv=None):
    args = parse_args(argv)
    with data.change_git_dir(os.getcwd()):
        try:
            args.func(args)
        except NothingStaged as e:
            print(e)
        except MinigitError as e:
            print(f'error: {e}', file=sys.stderr)
            sys.exit(1)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='minigit')
    commands = parser.add_subparsers(dest='command')
    commands.required = True

    init_parser = commands.add_parser('init')
    init_parser.set_defaults(func=init)

    add_parser = commands.add_parser('add')
    add_parser.set_defaults(func=add)
    add_parser.add_argument('files', nargs='+')

    commit_parser = commands.add_parser('commit')
    commit_parser.set_defaults(func=commit)
    commit_parser.add_argument('-m', '--message', required=True)

    status_parser = commands.add_parser('status')
    status_parser.set_defaults(func=status)

    log_parser = commands.add_parser('log')
    log_parser.set_defaults(func=log)
    log_parser.add_argument('oid', default='@', nargs='?')

    hash_object_parser = commands.add_parser('hash-object')
    hash_object_parser.set_defaults(func=hash_object)
    hash_object_parser.add_argument('file')

    cat_file_parser = commands.add_parser('cat-file')
    cat_file_parser.set_defaults(func=cat_file)
    cat_file_parser.add_argument('object')

    return parser.parse_args(argv)


def init(args):
    if base.init():
        print(f'Initialized empty minigit repository in {data.GIT_DIR}')
    else:
        print('Repository already exists!')


def add(args):
    for entry in base.add(args.files):
        print(f'File {entry.path} added with hash {entry.digest}')


def commit(args):
    print(f'Commit successful with hash: {base.commit(args.message)}')


def status(args):
    print(f'On branch {base.get_branch_name()}')
    changes = base.get_staged_changes()
    if not changes:
        print('Nothing staged')
        return
    print('\nChanges to be committed:')
    for path, action in changes:
        print(f'{action:>12}: {path}')


def log(args):
    if args.oid in ('@', 'HEAD'):
        history = base.log_from_current_branch()
    else:
        history = base.history(base.get_oid(args.oid))
    for oid, commit_ in history.items():
        print(f'commit {oid}')
        print(f'Date:  {commit_.timestamp}\n')
        print(textwrap.indent(commit_.message, '    '))
        print('')
    if history.broken:
        print(f'warning: {history.broken}', file=sys.stderr)


def hash_object(args):
    with open(args.file, 'rb') as f:
        print(data.put_object(f.read()))


def cat_file(args):
    sys.stdout.flush()
    sys.stdout.buffer.write(data.get_object(base.get_oid(args.object)))
