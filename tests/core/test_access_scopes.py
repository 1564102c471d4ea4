"""
Role-scoped data access: what each kind of user can list and fetch.
"""

from edconnect.core.access import (
    AllScope,
    DepartmentScope,
    DistrictScope,
    EducatorScope,
    NoAccessScope,
    OwnScope,
    SchoolScope,
)
from edconnect.core.models import (
    Achievement,
    AdminLevel,
    Department,
    Grade,
    SchoolClass,
    UserRole,
)


def _ids(rows):
    return sorted(row.id for row in rows)


class TestScopeResolution:
    def test_super_admin_sees_everything(self, db_service, make_user):
        admin = make_user("root", role=UserRole.ADMIN)
        assert isinstance(db_service.resolve_scope(admin), AllScope)

    def test_declared_level_picks_the_matching_id(self, db_service, make_user, school_world):
        admin = make_user(
            "lvl_admin",
            role=UserRole.ADMIN,
            district_id=school_world["district"].id,
            school_id=school_world["schools"][1].id,
            admin_level=AdminLevel.SCHOOL,
        )
        scope = db_service.resolve_scope(admin)
        assert scope == SchoolScope(school_world["schools"][1].id)

    def test_level_without_its_id_sees_nothing(self, db_service, make_user):
        admin = make_user("lost_admin", role=UserRole.ADMIN, admin_level=AdminLevel.DEPARTMENT)
        assert isinstance(db_service.resolve_scope(admin), NoAccessScope)
        assert db_service.get_all_users(admin) == []

    def test_without_level_the_broadest_id_wins(self, db_service, make_user, school_world):
        admin = make_user(
            "implicit_admin",
            role=UserRole.ADMIN,
            district_id=school_world["district"].id,
            school_id=school_world["schools"][0].id,
        )
        assert db_service.resolve_scope(admin) == DistrictScope(school_world["district"].id)

    def test_department_only_admin(self, db_service, make_user, school_world):
        department = db_service.create_department(
            Department(name="Science", school_id=school_world["schools"][0].id)
        )
        admin = make_user("dept_admin", role=UserRole.ADMIN, department_id=department.id)
        assert db_service.resolve_scope(admin) == DepartmentScope(department.id)

    def test_educator_and_student_scopes(self, db_service, school_world):
        educator_scope = db_service.resolve_scope(school_world["educator_user1"])
        assert isinstance(educator_scope, EducatorScope)
        assert educator_scope.school_id == school_world["schools"][0].id

        student_scope = db_service.resolve_scope(school_world["student_user1"])
        assert student_scope == OwnScope(
            user_id=school_world["student_user1"].id,
            student_id=school_world["students"][0].id,
            school_id=school_world["schools"][0].id,
        )

    def test_educator_without_profile_is_limited_to_self(self, db_service, make_user):
        user = make_user("bare_educator", role=UserRole.EDUCATOR, with_profile=False)
        scope = db_service.resolve_scope(user)
        assert isinstance(scope, OwnScope)
        assert _ids(db_service.get_all_users(user)) == [user.id]
        assert db_service.get_all_classes(user) == []


class TestStudentScope:
    def test_students_never_see_other_students_grades(self, db_service, school_world):
        grades = db_service.get_all_grades(school_world["student_user1"])
        assert [g.student_id for g in grades] == [school_world["students"][0].id]

        other = db_service.get_all_grades(school_world["student_user2"])
        assert [g.student_id for g in other] == [school_world["students"][1].id]

    def test_student_sees_only_enrolled_classes(self, db_service, school_world):
        classes = db_service.get_all_classes(school_world["student_user1"])
        assert _ids(classes) == [school_world["classes"][0].id]

    def test_student_cannot_fetch_another_class(self, db_service, school_world):
        other_class = school_world["classes"][1]
        assert (
            db_service.get_scoped(
                SchoolClass, "classes", other_class.id, school_world["student_user1"]
            )
            is None
        )

    def test_student_sees_own_and_public_achievements(self, db_service, school_world, make_user):
        me = school_world["student_user1"]
        schoolmate = make_user("schoolmate", school_id=school_world["schools"][0].id)
        other = school_world["student_user2"]
        mine = db_service.create_achievement(Achievement(user_id=me.id, title="Mine"))
        shared = db_service.create_achievement(
            Achievement(user_id=schoolmate.id, title="Shared", is_public=True)
        )
        db_service.create_achievement(Achievement(user_id=schoolmate.id, title="Private"))
        db_service.create_achievement(
            Achievement(user_id=other.id, title="Other school", is_public=True)
        )

        assert _ids(db_service.get_all_achievements(me)) == sorted([mine.id, shared.id])


class TestEducatorScope:
    def test_educator_sees_own_classes_and_students(self, db_service, school_world):
        educator = school_world["educator_user1"]
        assert _ids(db_service.get_all_classes(educator)) == [school_world["classes"][0].id]
        assert _ids(db_service.get_all_students(educator)) == [school_world["students"][0].id]
        assert [g.class_id for g in db_service.get_all_grades(educator)] == [
            school_world["classes"][0].id
        ]

    def test_educator_users_exclude_other_schools(self, db_service, school_world):
        educator = school_world["educator_user1"]
        visible = _ids(db_service.get_all_users(educator))
        assert visible == sorted([educator.id, school_world["student_user1"].id])


class TestAdminScopes:
    def test_school_admin_sees_only_their_school(self, db_service, school_world):
        admin = school_world["school_admin"]
        school1 = school_world["schools"][0]

        assert _ids(db_service.get_all_schools(admin)) == [school1.id]
        assert _ids(db_service.get_all_classes(admin)) == [school_world["classes"][0].id]
        assert _ids(db_service.get_all_students(admin)) == [school_world["students"][0].id]
        assert all(c.school_id == school1.id for c in db_service.get_all_classes(admin))
        assert [g.student_id for g in db_service.get_all_grades(admin)] == [
            school_world["students"][0].id
        ]
        assert _ids(db_service.get_all_users(admin)) == sorted(
            [
                school_world["educator_user1"].id,
                school_world["student_user1"].id,
                admin.id,
            ]
        )
        assert _ids(db_service.get_all_districts(admin)) == [school_world["district"].id]

    def test_district_admin_sees_every_school_in_district(
        self, db_service, make_user, school_world
    ):
        admin = make_user(
            "district_admin",
            role=UserRole.ADMIN,
            district_id=school_world["district"].id,
            admin_level=AdminLevel.DISTRICT,
        )
        assert len(db_service.get_all_schools(admin)) == 2
        assert len(db_service.get_all_grades(admin)) == 2

    def test_super_admin_and_unscoped_calls_see_all(self, db_service, school_world):
        assert len(db_service.get_all_grades(school_world["super_admin"])) == 2
        assert len(db_service.get_all_grades()) == 2

    def test_out_of_scope_fetch_returns_none(self, db_service, school_world):
        grade = db_service.get_all_grades(school_world["student_user2"])[0]
        assert db_service.get_scoped(Grade, "grades", grade.id, school_world["school_admin"]) is None
        assert (
            db_service.get_scoped(Grade, "grades", grade.id, school_world["super_admin"]).id
            == grade.id
        )
