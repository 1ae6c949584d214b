"""
Unit tests for the repository interfaces.

Every method annotation must resolve to a type. A method named after a
builtin shadows it for annotations written later in the same class body.
"""

import inspect
import typing

import pytest

from repositories import base, sqlite_backend

REPOSITORY_CLASSES = [
    base.AnswerRepository,
    base.CycleRepository,
    base.CounterRepository,
    base.SnapshotRepository,
    base.PickRepository,
    base.Repository,
    sqlite_backend.SqlAnswerRepository,
    sqlite_backend.SqlCycleRepository,
    sqlite_backend.SqlCounterRepository,
    sqlite_backend.SqlSnapshotRepository,
    sqlite_backend.SqlPickRepository,
    sqlite_backend.AnswerStore,
]


def test_store_importable():
    from repositories import AnswerStore
    assert issubclass(AnswerStore, base.Repository)


@pytest.mark.parametrize("cls", REPOSITORY_CLASSES, ids=lambda cls: cls.__name__)
def test_annotations_are_types(cls):
    for name, member in vars(cls).items():
        if not inspect.isfunction(member):
            continue
        for annotation in member.__annotations__.values():
            if isinstance(annotation, str):
                continue
            assert not inspect.isfunction(annotation), f"{cls.__name__}.{name}"
            assert not inspect.isfunction(typing.get_origin(annotation)), f"{cls.__name__}.{name}"


@pytest.mark.parametrize("cls", [base.CycleRepository, sqlite_backend.SqlCycleRepository,
                                 base.SnapshotRepository, sqlite_backend.SqlSnapshotRepository],
                         ids=lambda cls: cls.__name__)
def test_list_returns_builtin_list(cls):
    assert typing.get_origin(cls.list.__annotations__["return"]) is list
