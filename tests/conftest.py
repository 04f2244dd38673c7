import numpy as np
import pandas as pd
import pytest

COLUMNS = [
    "Age", "Attrition", "BusinessTravel", "DailyRate", "Department", "DistanceFromHome",
    "Education", "EducationField", "EmployeeCount", "EmployeeNumber", "EnvironmentSatisfaction",
    "Gender", "HourlyRate", "JobInvolvement", "JobLevel", "JobRole", "JobSatisfaction",
    "MaritalStatus", "MonthlyIncome", "MonthlyRate", "NumCompaniesWorked", "Over18", "OverTime",
    "PercentSalaryHike", "PerformanceRating", "RelationshipSatisfaction", "StandardHours",
    "StockOptionLevel", "TotalWorkingYears", "TrainingTimesLastYear", "WorkLifeBalance",
    "YearsAtCompany", "YearsInCurrentRole", "YearsSinceLastPromotion", "YearsWithCurrManager",
]


def synthetic_frame(n: int = 240, seed: int = 7) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    rows = []
    for i in range(n):
        overtime = str(rng.choice(["Yes", "No"], p=[0.3, 0.7]))
        satisfaction = int(rng.integers(1, 5))
        years_total = int(rng.integers(0, 30))
        years_company = int(rng.integers(0, years_total + 1))
        risk = 0.08 + 0.25 * (overtime == "Yes") + 0.06 * (4 - satisfaction)
        rows.append(
            {
                "Age": int(rng.integers(18, 60)),
                "Attrition": "Yes" if rng.random() < risk else "No",
                "BusinessTravel": str(rng.choice(["Travel_Rarely", "Travel_Frequently", "Non-Travel"])),
                "DailyRate": int(rng.integers(100, 1500)),
                "Department": str(rng.choice(["Sales", "Research & Development", "Human Resources"])),
                "DistanceFromHome": int(rng.integers(1, 30)),
                "Education": int(rng.integers(1, 6)),
                "EducationField": str(rng.choice(["Life Sciences", "Medical", "Marketing", "Other"])),
                "EmployeeCount": 1,
                "EmployeeNumber": 1000 + i,
                "EnvironmentSatisfaction": int(rng.integers(1, 5)),
                "Gender": str(rng.choice(["Male", "Female"])),
                "HourlyRate": int(rng.integers(30, 100)),
                "JobInvolvement": int(rng.integers(1, 5)),
                "JobLevel": int(rng.integers(1, 6)),
                "JobRole": str(rng.choice(["Sales Executive", "Research Scientist", "Laboratory Technician"])),
                "JobSatisfaction": satisfaction,
                "MaritalStatus": str(rng.choice(["Single", "Married", "Divorced"])),
                "MonthlyIncome": int(rng.integers(1000, 20000)),
                "MonthlyRate": int(rng.integers(2000, 27000)),
                "NumCompaniesWorked": int(rng.integers(0, 10)),
                "Over18": "Y",
                "OverTime": overtime,
                "PercentSalaryHike": int(rng.integers(11, 26)),
                "PerformanceRating": int(rng.integers(3, 5)),
                "RelationshipSatisfaction": int(rng.integers(1, 5)),
                "StandardHours": 80,
                "StockOptionLevel": int(rng.integers(0, 4)),
                "TotalWorkingYears": years_total,
                "TrainingTimesLastYear": int(rng.integers(0, 7)),
                "WorkLifeBalance": int(rng.integers(1, 5)),
                "YearsAtCompany": years_company,
                "YearsInCurrentRole": int(rng.integers(0, years_company + 1)),
                "YearsSinceLastPromotion": int(rng.integers(0, years_company + 1)),
                "YearsWithCurrManager": int(rng.integers(0, years_company + 1)),
            }
        )
    return pd.DataFrame(rows, columns=COLUMNS)


def synthetic_csv(n: int = 240, seed: int = 7) -> str:
    return synthetic_frame(n, seed).to_csv(index=False)


@pytest.fixture
def hr_csv() -> str:
    return synthetic_csv()
