from pathlib import Path
from shutil import rmtree

from invoke import UnexpectedExit, task

TOP_DIR = Path(__file__).parent
SRC_DIR = TOP_DIR / 'src'
SRC_ENV = {'PYTHONPATH': str(SRC_DIR)}

mypy_report = 'mypy-report'

def source_arg(pattern):
    """Converts a source pattern to a command line argument."""
    if pattern is None:
        paths = (TOP_DIR / 'src' / 'buildalert').glob('**/*.py')
    else:
        paths = Path.cwd().glob(pattern)
    return ' '.join(str(path) for path in paths)

def remove_dir(path):
    """Recursively removes a directory."""
    if path.exists():
        rmtree(str(path))

@task
def clean(c):
    """Clean up our output."""
    print('Cleaning up...')
    remove_dir(TOP_DIR / mypy_report)
    remove_dir(TOP_DIR / '.mypy_cache')

@task
def lint(c, src=None, rule=None):
    """Check sources with PyLint."""
    print('Checking sources with PyLint...')
    cmd = ['pylint']
    if rule is not None:
        cmd += [
            '--disable=all', '--enable=' + rule,
            '--persistent=n', '--score=n'
            ]
    cmd.append(source_arg(src))
    with c.cd(str(TOP_DIR)):
        c.run(' '.join(cmd), env=SRC_ENV, warn=True, pty=True)

@task
def types(c, src=None, clean=False, report=False):
    """Check sources with mypy."""
    if clean:
        print('Clearing mypy cache...')
        remove_dir(TOP_DIR / '.mypy_cache')
    print('Checking sources with mypy...')
    args = []
    if report:
        remove_dir(TOP_DIR / mypy_report)
        args.append('--html-report ' + mypy_report)
    args.append(source_arg(src))
    with c.cd(str(TOP_DIR)):
        try:
            c.run('mypy %s' % ' '.join(args), env=SRC_ENV, pty=True)
        except UnexpectedExit as ex:
            if ex.result.exited < 0:
                print(ex)

@task
def unittest(c, suite=None, junit_xml=None, coverage=False):
    """Run unit tests."""
    test_dir = TOP_DIR / 'tests' / 'unit'
    cmd = ['pytest']
    if coverage:
        cmd.append(f'--cov={SRC_DIR}')
        cmd.append('--cov-report=')
    if junit_xml is not None:
        cmd.append(f'--junit-xml={junit_xml}')
    if suite is None:
        cmd.append(str(test_dir))
    else:
        cmd.extend(str(path) for path in test_dir.glob(suite))
    with c.cd(str(test_dir)):
        c.run(' '.join(cmd), env=SRC_ENV, pty=True)

@task(post=[unittest, lint, types])
def test(c):
    """Run all tests."""

@task
def isort(c, src=None):
    """Sort imports."""
    print('Sorting imports...')
    with c.cd(str(TOP_DIR)):
        c.run('isort %s' % source_arg(src), pty=True)
