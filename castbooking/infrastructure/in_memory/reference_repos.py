from castbooking.application.interfaces.reference_repos import CourseRepo, CustomerRepo, StaffRepo
from castbooking.domain.entities.references import Course, Customer, Staff


class InMemoryCustomerRepo(CustomerRepo):
    def __init__(self) -> None:
        self.customers: dict[str, Customer] = {}

    def add(self, customer: Customer) -> None:
        self.customers[customer.id] = customer

    async def find_by_id(self, customer_id: str) -> Customer | None:
        return self.customers.get(customer_id)


class InMemoryStaffRepo(StaffRepo):
    def __init__(self) -> None:
        self.staff: dict[str, Staff] = {}

    def add(self, staff: Staff) -> None:
        self.staff[staff.id] = staff

    async def find_by_id(self, staff_id: str) -> Staff | None:
        return self.staff.get(staff_id)


class InMemoryCourseRepo(CourseRepo):
    def __init__(self) -> None:
        self.courses: dict[str, Course] = {}

    def add(self, course: Course) -> None:
        self.courses[course.id] = course

    async def find_by_id(self, course_id: str) -> Course | None:
        return self.courses.get(course_id)
