"""Tests for the C# extractor."""

import pytest

from codeflow.lang_csharp import infer_csharp_type, partition_bases, split_type_list
from codeflow.models import ComponentType, Language
from codeflow.parser import extract_source

SAMPLE = """using System;
using static System.Math;
using Json = Newtonsoft.Json.JsonConvert;

namespace Shop.Orders
{
    [Serializable]
    public sealed class OrderService : ServiceBase<Order>, IOrderService, IDisposable where Order : class
    {
        public void Dispose() { }
    }

    public interface IOrderService : IService
    {
        void Place(Order order);
    }

    internal enum OrderState : byte
    {
        Open,
        Closed
    }

    public class Order
    {
    }
}
"""


@pytest.fixture
def result():
    return extract_source("Shop/Orders/OrderService.cs", SAMPLE)


def _by_name(result):
    return {d.name: d for d in result.declarations}


class TestDeclarations:
    def test_declarations_found(self, result):
        decls = _by_name(result)

        assert set(decls) == {"OrderService", "IOrderService", "OrderState", "Order"}
        assert all(d.language is Language.CSHARP for d in result.declarations)

    def test_namespace_qualified_exports(self, result):
        decls = _by_name(result)

        assert decls["Order"].exported_names == ["Order", "Shop.Orders.Order"]

    def test_base_list_split(self, result):
        decls = _by_name(result)

        assert decls["OrderService"].description == (
            "Extends: ServiceBase; Implements: IOrderService, IDisposable"
        )
        assert decls["IOrderService"].description == "Extends: IService"
        assert decls["Order"].description is None

    def test_kinds(self, result):
        decls = _by_name(result)

        assert decls["OrderService"].kind is ComponentType.SERVICE
        assert decls["IOrderService"].kind is ComponentType.SERVICE
        assert decls["OrderState"].kind is ComponentType.TYPE
        assert decls["Order"].kind is ComponentType.CLASS

    def test_generic_class_with_constraint_only(self):
        source = "public class Pool<T> where T : new()\n{\n}\n"

        decls = _by_name(extract_source("Core/Pool.cs", source))

        assert decls["Pool"].kind is ComponentType.CLASS
        assert decls["Pool"].description is None

    def test_class_position_ignores_attributes(self, result):
        decl = _by_name(result)["OrderService"]

        assert decl.line == 8
        assert decl.column == 4


class TestUsings:
    def test_using_forms(self, result):
        found = [(s.source, s.names, s.is_namespace) for s in result.imports]

        assert ("System", ["System"], True) in found
        assert ("System.Math", ["Math"], True) in found
        assert ("Newtonsoft.Json.JsonConvert", ["JsonConvert"], False) in found

    def test_using_statement_in_method_is_not_an_import(self):
        source = "class A {\n  void F() {\n    using (var s = Open()) { }\n  }\n}\n"

        assert extract_source("A.cs", source).imports == []


class TestInference:
    def test_unity_base_classes(self):
        source = (
            "public class PlayerController : MonoBehaviour { }\n"
            "public class GameSettings : ScriptableObject { }\n"
        )

        decls = _by_name(extract_source("Assets/Scripts/Player.cs", source))

        assert decls["PlayerController"].kind is ComponentType.COMPONENT
        assert decls["GameSettings"].kind is ComponentType.CONFIG

    @pytest.mark.parametrize(
        "name,path,expected",
        [
            ("OrdersController", "Web/Home.cs", ComponentType.API),
            ("AudioManager", "Game/Audio.cs", ComponentType.SERVICE),
            ("UserRepository", "Data/Users.cs", ComponentType.SERVICE),
            ("ClickHandler", "UI/Input.cs", ComponentType.FUNCTION),
            ("Customer", "Domain/Entities/Customer.cs", ComponentType.CLASS),
            ("IClock", "Core/Clock.cs", ComponentType.TYPE),
            ("StringHelper", "Core/Strings.cs", ComponentType.UTIL),
            ("AppSettings", "Core/App.cs", ComponentType.CONFIG),
            ("Invoice", "Core/Invoice.cs", ComponentType.CLASS),
        ],
    )
    def test_naming_rules(self, name, path, expected):
        assert infer_csharp_type(name, path, []) is expected


class TestTypeLists:
    def test_split_respects_generics(self):
        text = "Base<T>, IFoo, IBar<K, V>, System.IDisposable where T : class"

        assert split_type_list(text) == ["Base", "IFoo", "IBar", "IDisposable"]

    def test_partition(self):
        assert partition_bases(["Base", "IFoo", "Item"]) == (["Base", "Item"], ["IFoo"])
