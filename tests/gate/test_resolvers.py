import unittest
from dataclasses import dataclass
from typing import Optional

from levelgate.core.errors import AccessSubjectNotFound, MissingRequiredParameter, ValidationError
from levelgate.core.resolver import (
    CallArguments,
    NamedParameterResolver,
    Param,
    StructuredObjectResolver,
    build_resolver,
    is_integral_type,
)
from levelgate.core.subject import AccessSubject
from levelgate.services import MemberAccessInfo


@dataclass
class Ticket:
    caller_id: Optional[int]
    resource_id: Optional[int]


class TestStructuredObjectResolver(unittest.TestCase):
    def setUp(self) -> None:
        self.resolver = StructuredObjectResolver()

    def test_returns_the_subject_among_unrelated_values(self) -> None:
        subject = AccessSubject(1, 7)
        call = CallArguments.of("x", 42, subject, {"k": "v"})
        self.assertIs(self.resolver.resolve(call), subject)

    def test_builds_subject_from_equivalent_shapes(self) -> None:
        self.assertEqual(self.resolver.resolve(CallArguments.of(MemberAccessInfo(3, 4))), AccessSubject(3, 4))
        self.assertEqual(self.resolver.resolve(CallArguments.of(Ticket(5, 6))), AccessSubject(5, 6))

    def test_no_candidate_fails(self) -> None:
        with self.assertRaises(AccessSubjectNotFound) as cm:
            self.resolver.resolve(CallArguments.of("x", 1, None))
        self.assertEqual(cm.exception.code, "subject.not_found")

    def test_zero_arguments_fails(self) -> None:
        with self.assertRaises(AccessSubjectNotFound):
            self.resolver.resolve(CallArguments())

    def test_first_candidate_wins(self) -> None:
        call = CallArguments.of(0, AccessSubject(1, 1), MemberAccessInfo(2, 2), AccessSubject(3, 3))
        for _ in range(20):
            self.assertEqual(self.resolver.resolve(call), AccessSubject(1, 1))

    def test_matching_shape_with_null_field_fails_closed(self) -> None:
        with self.assertRaises(AccessSubjectNotFound) as cm:
            self.resolver.resolve(CallArguments.of(Ticket(None, 1), AccessSubject(9, 9)))
        self.assertEqual(cm.exception.data["type"], "Ticket")

    def test_classes_are_not_candidates(self) -> None:
        class Shape:
            caller_id = 1
            resource_id = 1

        with self.assertRaises(AccessSubjectNotFound):
            self.resolver.resolve(CallArguments.of(Shape))


class TestNamedParameterResolver(unittest.TestCase):
    def setUp(self) -> None:
        self.resolver = NamedParameterResolver()

    def test_resolves_login_member_id_and_access_number(self) -> None:
        call = CallArguments.from_params([Param("loginMemberId", int, 1), Param("accessNumber", int, 1)])
        self.assertEqual(self.resolver.resolve(call), AccessSubject(caller_id=1, resource_id=1))

    def test_order_and_extra_parameters_do_not_matter(self) -> None:
        call = CallArguments.from_params(
            [Param("note", str, "hi"), Param("accessNumber", int, 8), Param("loginMemberId", int, 2)]
        )
        self.assertEqual(self.resolver.resolve(call), AccessSubject(2, 8))

    def test_missing_parameter_fails(self) -> None:
        call = CallArguments.from_params([Param("loginMemberId", int, 1)])
        with self.assertRaises(MissingRequiredParameter) as cm:
            self.resolver.resolve(call)
        self.assertEqual(cm.exception.code, "parameter.missing")
        self.assertEqual(cm.exception.data["missing"], ["accessNumber"])

    def test_null_parameter_fails(self) -> None:
        for params in (
            [Param("loginMemberId", int, None), Param("accessNumber", int, 1)],
            [Param("loginMemberId", int, 1), Param("accessNumber", Optional[int], None)],
        ):
            with self.subTest(params=params):
                with self.assertRaises(MissingRequiredParameter):
                    self.resolver.resolve(CallArguments.from_params(params))

    def test_wrong_declared_type_is_not_a_match(self) -> None:
        call = CallArguments.from_params([Param("loginMemberId", str, "1"), Param("accessNumber", int, 1)])
        with self.assertRaises(MissingRequiredParameter) as cm:
            self.resolver.resolve(call)
        self.assertEqual(cm.exception.data["missing"], ["loginMemberId"])

    def test_zero_arguments_fails(self) -> None:
        with self.assertRaises(MissingRequiredParameter):
            self.resolver.resolve(CallArguments.from_params([]))

    def test_values_without_names_fail(self) -> None:
        with self.assertRaises(MissingRequiredParameter):
            self.resolver.resolve(CallArguments.of(1, 1))

    def test_first_occurrence_wins(self) -> None:
        call = CallArguments.from_params(
            [
                Param("loginMemberId", int, 1),
                Param("accessNumber", int, 10),
                Param("loginMemberId", int, 2),
                Param("accessNumber", int, 20),
            ]
        )
        self.assertEqual(self.resolver.resolve(call), AccessSubject(1, 10))

    def test_first_occurrence_wins_even_when_null(self) -> None:
        call = CallArguments.from_params(
            [Param("loginMemberId", int, None), Param("accessNumber", int, 1), Param("loginMemberId", int, 2)]
        )
        with self.assertRaises(MissingRequiredParameter):
            self.resolver.resolve(call)

    def test_binds_python_signature(self) -> None:
        def op(login_member_id: int, access_number: Optional[int] = 5, note: str = "") -> str:
            return note

        resolver = NamedParameterResolver(caller_param="login_member_id", resource_param="access_number")
        self.assertEqual(resolver.resolve(CallArguments.bind(op, (3,), {})), AccessSubject(3, 5))
        self.assertEqual(resolver.resolve(CallArguments.bind(op, (), {"login_member_id": 4, "access_number": 6})), AccessSubject(4, 6))


class TestResolverHelpers(unittest.TestCase):
    def test_is_integral_type(self) -> None:
        self.assertTrue(is_integral_type(int))
        self.assertTrue(is_integral_type(Optional[int]))
        self.assertTrue(is_integral_type(int | None))
        self.assertFalse(is_integral_type(bool))
        self.assertFalse(is_integral_type(str))
        self.assertFalse(is_integral_type(Optional[str]))
        self.assertFalse(is_integral_type(int | str))
        self.assertFalse(is_integral_type("int"))

    def test_build_resolver(self) -> None:
        self.assertIsInstance(build_resolver("structured_object"), StructuredObjectResolver)
        named = build_resolver("named_parameters", caller_param="uid")
        self.assertIsInstance(named, NamedParameterResolver)
        self.assertEqual(named.caller_param, "uid")
        self.assertEqual(named.resource_param, "accessNumber")
        with self.assertRaises(ValidationError):
            build_resolver("reflection")

    def test_call_arguments_must_be_parallel(self) -> None:
        with self.assertRaises(ValueError):
            CallArguments(values=(1, 2), names=("a",))

    def test_bind_flattens_var_arguments(self) -> None:
        def op(*items: int, **extra: int) -> None:
            return None

        call = CallArguments.bind(op, (1, 2), {"accessNumber": 3})
        self.assertEqual(call.values, (1, 2, 3))
        self.assertEqual(call.names, ("items", "items", "accessNumber"))
        self.assertEqual(call.types, (int, int, int))


if __name__ == "__main__":
    unittest.main()
