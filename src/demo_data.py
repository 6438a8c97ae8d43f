"""Sample family over three generations, used by `main.py --demo` and the tests."""

from models import Gender, Person

DEMO_PEOPLE: list[Person] = [
    # Generation 1: grandparents
    Person(
        id="gp1",
        first_name="Henri",
        last_name="Martin",
        birth_year=1940,
        death_year=2015,
        gender=Gender.MALE,
        partner_id="gp2",
        children_ids=("p1",),
    ),
    Person(
        id="gp2",
        first_name="Marie",
        last_name="Martin",
        birth_year=1942,
        gender=Gender.FEMALE,
        partner_id="gp1",
        children_ids=("p1",),
    ),
    # Generation 2: parents
    Person(
        id="p1",
        first_name="Jean",
        last_name="Martin",
        birth_year=1970,
        gender=Gender.MALE,
        parent_ids=("gp1", "gp2"),
        partner_id="p2",
        children_ids=("e1", "e2", "e3"),
    ),
    Person(
        id="p2",
        first_name="Sophie",
        last_name="Dubois",
        birth_year=1972,
        gender=Gender.FEMALE,
        partner_id="p1",
        children_ids=("e1", "e2", "e3"),
    ),
    # Generation 3: children
    Person(
        id="e1",
        first_name="Lucas",
        last_name="Martin",
        birth_year=2000,
        gender=Gender.MALE,
        parent_ids=("p1", "p2"),
    ),
    Person(
        id="e2",
        first_name="Emma",
        last_name="Martin",
        birth_year=2003,
        gender=Gender.FEMALE,
        parent_ids=("p1", "p2"),
    ),
    Person(
        id="e3",
        first_name="Noah",
        last_name="Martin",
        birth_year=2005,
        gender=Gender.MALE,
        parent_ids=("p1", "p2"),
    ),
]
