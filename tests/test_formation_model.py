import unittest

from pitchside.models import Category, FormationTemplates, category_from_coords


class FormationTemplateTests(unittest.TestCase):
    def test_supported_team_sizes(self) -> None:
        self.assertEqual(FormationTemplates.supported_team_sizes(), [4, 7, 9, 11])

    def test_every_template_matches_its_team_size(self) -> None:
        for team_size in FormationTemplates.supported_team_sizes():
            for template in FormationTemplates.for_team_size(team_size):
                self.assertEqual(len(template.slots), team_size, template.name)

    def test_seven_a_side_two_two_two(self) -> None:
        template = FormationTemplates.get(7, 2)
        self.assertEqual(template.name, "2-2-2")
        self.assertEqual(
            [slot.category for slot in template.slots],
            [Category.GOALKEEPER, Category.DEFENDER, Category.DEFENDER,
             Category.MIDFIELDER, Category.MIDFIELDER, Category.FORWARD, Category.FORWARD],
        )
        self.assertEqual(template.get_formation_shape(), (1, 2, 2, 2))

    def test_four_a_side_has_no_goalkeeper(self) -> None:
        for template in FormationTemplates.for_team_size(4):
            self.assertNotIn(Category.GOALKEEPER, [s.category for s in template.slots])

    def test_unknown_lookups(self) -> None:
        self.assertEqual(FormationTemplates.for_team_size(5), [])
        self.assertIsNone(FormationTemplates.get(7, 9))
        self.assertEqual(FormationTemplates.index_of(11, "4-3-3"), 1)
        self.assertIsNone(FormationTemplates.index_of(11, "5-5-0"))

    def test_category_from_coords(self) -> None:
        self.assertEqual(category_from_coords(90, 7), Category.GOALKEEPER)
        self.assertEqual(category_from_coords(70, 7), Category.DEFENDER)
        self.assertEqual(category_from_coords(45, 7), Category.MIDFIELDER)
        self.assertEqual(category_from_coords(20, 7), Category.FORWARD)
        self.assertEqual(category_from_coords(85, 4), Category.DEFENDER)
        self.assertEqual(category_from_coords(55, 4), Category.MIDFIELDER)


if __name__ == "__main__":
    unittest.main()
