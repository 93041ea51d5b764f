"""
End-to-End Demo: resight on TodoMVC

Finds the new-todo input by its placeholder, types two items, and follows
the first item across the re-render the second one causes.
"""

from selenium.webdriver.common.keys import Keys

from resight import PageSession, ViewportPoint, around
from resight.core.driver_factory import create_driver
from resight.layers.action.executor import ActionExecutor
from resight.layers.action.finders import tag_is, text_equals
from resight.reporters.flight_recorder import FlightRecorder


def main():
    print("=" * 60)
    print("🔭 resight - TodoMVC Demo")
    print("=" * 60)
    print()

    recorder = FlightRecorder(output_dir="./resight_reports")
    driver = create_driver(headless=False)
    try:
        driver.get("https://demo.playwright.dev/todomvc/")
        session = PageSession.from_driver(driver, recorder=recorder)
        executor = ActionExecutor(session, recorder=recorder)

        [new_todo] = session.search_with_scroll(
            around(ViewportPoint(0, 0), text_equals("What needs to be done?") & tag_is("input"))
        )
        print(f"Input: {new_todo}")

        executor.type_text(new_todo, "Buy milk" + Keys.ENTER)
        [milk] = session.find_around(ViewportPoint(0, 0), text_equals("Buy milk"))
        print(f"First item: {milk}")

        executor.type_text(new_todo, "Walk the dog" + Keys.ENTER)
        milk_again = session.reidentify(milk)
        print(f"First item after re-render: {milk_again}")

        result = executor.hover(milk_again)
        status = "✅" if result.success else "❌"
        print(f"   {status} {result.action} → {result.target} ({result.duration_ms:.0f}ms)")
    finally:
        driver.quit()

    print()
    print(f"📄 Full report: {recorder.generate_report()}")


if __name__ == "__main__":
    main()
