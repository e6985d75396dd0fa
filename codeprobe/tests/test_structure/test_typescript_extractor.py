"""Tests for the TypeScript extractor."""

import time

import pytest

from codeprobe.core.structure import TypeScriptExtractor


# =========================================================================
# Sample TypeScript source fixtures
# =========================================================================

SERVICES = '''
import { Injectable } from '@angular/core';
import type { Request } from 'express';
export * from './models';

/** Something that can be stored. */
export interface Repository<T> extends Readable, Writable<T> {
  readonly id: string;
  name?: string;
  find(id: string): Promise<T>;
  save?(item: T): void;
}

export enum Color {
  Red = 'RED',
  Green = 'GREEN',
  Blue,
}

const enum Flags { None = 0, Read = 1 << 0 }

export type Handler = (req: Request) => void;

@Injectable()
export class UserService extends BaseService implements Repository<User> {
  private static instances = 0;
  protected readonly cache: Map<string, User> = new Map();
  label?: string;

  constructor(private readonly http: HttpClient, public name: string) {
    super();
  }

  async find(id: string): Promise<User> {
    if (this.cache.has(id)) {
      return this.cache.get(id)!;
    }
    return await this.http.get(`/users/${id}`);
  }

  public save(item: User, force?: boolean): void {}

  private format<K extends keyof User>(key: K): string {
    return String(key);
  }
}

export abstract class Shape {
  abstract area(): number;
  describe(): string {
    return `area ${this.area()}`;
  }
}

export namespace Geometry {
  export function distance(a: Point, b: Point): number {
    return Math.sqrt(a.x * b.x);
  }
}

export function identity<T>(value: T): T {
  return value;
}

export const toUpper = (text: string): string => text.toUpperCase();
'''


def _line(source: str, needle: str) -> int:
    for number, line in enumerate(source.split("\n"), start=1):
        if needle in line:
            return number
    raise AssertionError(f"{needle!r} not in source")


@pytest.fixture
def summary():
    return TypeScriptExtractor().parse(SERVICES)


def _class(summary, name):
    return next(c for c in summary.classes if c.name == name)


# =========================================================================
# Interfaces, enums and aliases
# =========================================================================

class TestTypeScriptTypes:
    def test_type_names_and_kinds(self, summary):
        assert [(c.name, c.kind) for c in summary.classes] == [
            ("Repository", "interface"),
            ("Color", "enum"),
            ("Flags", "enum"),
            ("UserService", "class"),
            ("Shape", "class"),
        ]

    def test_interface_extends_list_is_implemented(self, summary):
        repository = _class(summary, "Repository")

        assert repository.extends is None
        assert repository.implements == ("Readable", "Writable<T>")
        assert repository.docstring == "Something that can be stored."

    def test_interface_properties(self, summary):
        repository = _class(summary, "Repository")

        assert [(p.name, p.type, p.modifiers) for p in repository.properties] == [
            ("id", "string", ("readonly",)),
            ("name", "string", ("optional",)),
        ]

    def test_interface_method_signatures(self, summary):
        find, save = _class(summary, "Repository").methods

        assert (find.name, find.return_type, find.has_body) == ("find", "Promise<T>", False)
        assert find.is_exported is True
        assert (save.name, save.return_type, save.has_body) == ("save", "void", False)
        assert save.metadata["isOptional"] is True

    def test_enum_members(self, summary):
        color = _class(summary, "Color")

        assert color.metadata["members"] == [
            {"name": "Red", "value": "'RED'"},
            {"name": "Green", "value": "'GREEN'"},
            {"name": "Blue", "value": None},
        ]
        assert color.methods == ()
        assert color.is_exported is True

    def test_const_enum(self, summary):
        flags = _class(summary, "Flags")

        assert flags.metadata["isConst"] is True
        assert flags.metadata["members"] == [
            {"name": "None", "value": "0"},
            {"name": "Read", "value": "1 << 0"},
        ]
        assert flags.is_exported is False


# =========================================================================
# Classes
# =========================================================================

class TestTypeScriptClasses:
    def test_heritage_and_decorators(self, summary):
        service = _class(summary, "UserService")

        assert service.extends == "BaseService"
        assert service.implements == ("Repository<User>",)
        assert service.metadata["decorators"] == ["Injectable"]
        assert service.start_line == _line(SERVICES, "export class UserService")

    def test_methods_in_order(self, summary):
        service = _class(summary, "UserService")
        assert [m.name for m in service.methods] == ["constructor", "find", "save", "format"]

    def test_constructor_parameter_modifiers(self, summary):
        constructor = _class(summary, "UserService").methods[0]

        assert constructor.is_constructor is True
        assert constructor.return_type is None
        assert [(p.name, p.type, p.modifier) for p in constructor.parameters] == [
            ("http", "HttpClient", "private readonly"),
            ("name", "string", "public"),
        ]

    def test_fields_and_parameter_properties(self, summary):
        service = _class(summary, "UserService")

        assert [(p.name, p.type, p.visibility, p.is_static, p.default_value) for p in service.properties] == [
            ("instances", "any", "private", True, "0"),
            ("cache", "Map<string, User>", "protected", False, "new Map()"),
            ("label", "string", "public", False, None),
            ("http", "HttpClient", "private", False, None),
            ("name", "string", "public", False, None),
        ]
        assert service.properties[2].modifiers == ("optional",)
        assert service.properties[3].modifiers == ("private", "readonly")

    def test_async_method(self, summary):
        find = _class(summary, "UserService").methods[1]

        assert find.is_async is True
        assert find.return_type == "Promise<User>"
        assert find.complexity == 2
        assert find.dependencies == frozenset({"cache", "http"})
        assert find.start_line == _line(SERVICES, "async find(id: string)")
        assert find.end_line == _line(SERVICES, "return await this.http.get") + 1

    def test_optional_parameter(self, summary):
        save = _class(summary, "UserService").methods[2]

        assert save.visibility == "public"
        assert [(p.name, p.type, p.optional) for p in save.parameters] == [
            ("item", "User", False),
            ("force", "boolean", True),
        ]

    def test_private_generic_method(self, summary):
        format_method = _class(summary, "UserService").methods[3]

        assert format_method.visibility == "private"
        assert format_method.is_exported is False
        assert format_method.metadata["typeParameters"] == "<K extends keyof User>"
        assert format_method.return_type == "string"
        assert format_method.dependencies == frozenset({"String"})

    def test_abstract_class(self, summary):
        shape = _class(summary, "Shape")
        area, describe = shape.methods

        assert shape.metadata["isAbstract"] is True
        assert shape.modifiers == ("export", "abstract")
        assert area.metadata["isAbstract"] is True
        assert area.has_body is False
        assert area.return_type == "number"
        assert describe.has_body is True


# =========================================================================
# Module level
# =========================================================================

class TestTypeScriptModule:
    def test_functions(self, summary):
        assert [f.name for f in summary.functions] == ["distance", "identity", "toUpper"]

    def test_namespace_function_is_module_level(self, summary):
        distance = summary.functions[0]

        assert distance.is_exported is True
        assert distance.return_type == "number"
        assert [(p.name, p.type) for p in distance.parameters] == [("a", "Point"), ("b", "Point")]

    def test_generic_function(self, summary):
        identity = summary.functions[1]

        assert identity.return_type == "T"
        assert identity.metadata["typeParameters"] == "<T>"

    def test_typed_arrow_function(self, summary):
        to_upper = summary.functions[2]

        assert to_upper.metadata["isArrow"] is True
        assert to_upper.return_type == "string"
        assert to_upper.dependencies == frozenset({"text"})
        assert to_upper.start_line == to_upper.end_line

    def test_imports(self, summary):
        assert [(i.source, [n.name for n in i.imports], i.is_external) for i in summary.imports] == [
            ("@angular/core", ["Injectable"], True),
            ("express", ["Request"], True),
        ]

    def test_exports(self, summary):
        assert [(e.name, e.type) for e in summary.exports] == [
            ("*", "namespace"),
            ("Repository", "interface"),
            ("Color", "enum"),
            ("Handler", "type"),
            ("UserService", "class"),
            ("Shape", "class"),
            ("Geometry", "namespace"),
            ("identity", "function"),
            ("toUpper", "variable"),
        ]

    def test_no_paren_errors(self, summary):
        assert summary.syntax_errors == ()


# =========================================================================
# Pathological input
# =========================================================================

class TestTypeScriptModifierRuns:
    @pytest.mark.parametrize("source", [
        "export declare abstract " * 600,
        "class A {\n  " + "private readonly " * 500 + "x = 1;\n}",
        "class A {\n  " + "public static async " * 400 + "\n}",
        "export type " * 600,
    ])
    def test_long_modifier_runs_finish_quickly(self, source):
        started = time.perf_counter()
        TypeScriptExtractor().parse(source)
        assert time.perf_counter() - started < 2.0

    def test_modifier_words_are_still_names(self):
        result = TypeScriptExtractor().parse("class A {\n  declare: string;\n  get() { return 1; }\n}\n")
        a = result.classes[0]

        assert [p.name for p in a.properties] == ["declare"]
        assert [m.name for m in a.methods] == ["get"]
