"""Static SRD 5.1 rules corpus.

Entries are grouped by RuleCategory and keyed by a slug so they can be
fetched directly as well as searched. This is TRUTH for rule lookups:
the model quotes these texts, it does not paraphrase rules from memory.
"""

from __future__ import annotations

from dnd_director.models.enums import RuleCategory

SRD_SOURCE = "SRD 5.1"

SRD_RULES: dict[RuleCategory, dict[str, tuple[str, str]]] = {
    # =========================================================================
    # Combat
    # =========================================================================
    RuleCategory.COMBAT: {
        "grappling": (
            "Grappling",
            "When you want to grab a creature or wrestle with it, you can use the Attack "
            "action to make a special melee attack, a grapple. If you're able to make "
            "multiple attacks with the Attack action, this attack replaces one of them. "
            "The target of your grapple must be no more than one size larger than you and "
            "must be within your reach.",
        ),
        "shoving": (
            "Shoving",
            "Using the Attack action, you can make a special melee attack to shove a "
            "creature, either to knock it prone or push it away from you. If you're able "
            "to make multiple attacks with the Attack action, this attack replaces one of them.",
        ),
        "opportunity_attacks": (
            "Opportunity Attacks",
            "In a fight, everyone is constantly watching for a chance to strike an enemy "
            "who is fleeing or passing by. Such a strike is called an opportunity attack. "
            "You can make an opportunity attack when a hostile creature that you can see "
            "moves out of your reach.",
        ),
        "two_weapon_fighting": (
            "Two-Weapon Fighting",
            "When you fight with a light melee weapon in each hand, you can use a bonus "
            "action to attack with the weapon in your other hand. This attack uses the same "
            "ability modifier as the primary attack. The off-hand attack doesn't add your "
            "ability modifier to the damage unless that modifier is negative.",
        ),
    },
    # =========================================================================
    # Conditions
    # =========================================================================
    RuleCategory.CONDITIONS: {
        "blinded": (
            "Blinded",
            "• A blinded creature can't see and automatically fails any ability check that "
            "requires sight.\n• Attack rolls against the creature have advantage, and the "
            "creature's attack rolls have disadvantage.",
        ),
        "charmed": (
            "Charmed",
            "• A charmed creature can't attack the charmer or target the charmer with "
            "harmful abilities or magical effects.\n• The charmer has advantage on any "
            "ability check to interact socially with the creature.",
        ),
        "frightened": (
            "Frightened",
            "• A frightened creature has disadvantage on ability checks and attack rolls "
            "while the source of its fear is within line of sight.\n• The creature can't "
            "willingly move closer to the source of its fear.",
        ),
        "grappled": (
            "Grappled",
            "• A grappled creature's speed becomes 0, and it can't benefit from any bonus "
            "to its speed.\n• The condition ends if the grappler is incapacitated or if an "
            "effect removes the grappled creature from the reach of the grappler or "
            "grappling effect.",
        ),
        "incapacitated": (
            "Incapacitated",
            "• An incapacitated creature can't take actions or reactions.",
        ),
        "poisoned": (
            "Poisoned",
            "• A poisoned creature has disadvantage on attack rolls and ability checks.",
        ),
        "prone": (
            "Prone",
            "• A prone creature's only movement option is to crawl, unless it stands up and "
            "thereby ends the condition.\n• The creature has disadvantage on attack rolls.\n"
            "• An attack roll against the creature has advantage if the attacker is within "
            "5 feet of the creature. Otherwise, the attack roll has disadvantage.",
        ),
        "restrained": (
            "Restrained",
            "• A restrained creature's speed becomes 0, and it can't benefit from any bonus "
            "to its speed.\n• Attack rolls against the creature have advantage, and the "
            "creature's attack rolls have disadvantage.\n• The creature has disadvantage "
            "on Dexterity saving throws.",
        ),
        "stunned": (
            "Stunned",
            "• A stunned creature is incapacitated, can't move, and can speak only "
            "falteringly.\n• The creature automatically fails Strength and Dexterity saving "
            "throws.\n• Attack rolls against the creature have advantage.",
        ),
        "unconscious": (
            "Unconscious",
            "• An unconscious creature is incapacitated, can't move or speak, and is unaware "
            "of its surroundings.\n• The creature drops whatever it's holding and falls "
            "prone.\n• The creature automatically fails Strength and Dexterity saving "
            "throws.\n• Attack rolls against the creature have advantage.\n• Any attack "
            "that hits the creature is a critical hit if the attacker is within 5 feet of "
            "the creature.",
        ),
    },
    # =========================================================================
    # Spells
    # =========================================================================
    RuleCategory.SPELLS: {
        "fireball": (
            "Fireball",
            "3rd-level evocation\nCasting Time: 1 action\nRange: 150 feet\nComponents: V, S, "
            "M (a tiny ball of bat guano and sulfur)\nDuration: Instantaneous\n\nA bright "
            "streak flashes from your pointing finger to a point you choose within range and "
            "then blossoms with a low roar into an explosion of flame. Each creature in a "
            "20-foot-radius sphere centered on that point must make a Dexterity saving "
            "throw. A target takes 8d6 fire damage on a failed save, or half as much damage "
            "on a successful one.",
        ),
        "magic_missile": (
            "Magic Missile",
            "1st-level evocation\nCasting Time: 1 action\nRange: 120 feet\nComponents: V, S\n"
            "Duration: Instantaneous\n\nYou create three glowing darts of magical force. "
            "Each dart hits a creature of your choice that you can see within range. A dart "
            "deals 1d4 + 1 force damage to its target. The darts all strike simultaneously, "
            "and you can direct them to hit one creature or several.",
        ),
        "cure_wounds": (
            "Cure Wounds",
            "1st-level evocation\nCasting Time: 1 action\nRange: Touch\nComponents: V, S\n"
            "Duration: Instantaneous\n\nA creature you touch regains a number of hit points "
            "equal to 1d8 + your spellcasting ability modifier. This spell has no effect on "
            "undead or constructs.",
        ),
        "shield": (
            "Shield",
            "1st-level abjuration\nCasting Time: 1 reaction, which you take when you are hit "
            "by an attack or targeted by the magic missile spell\nRange: Self\nComponents: "
            "V, S\nDuration: 1 round\n\nAn invisible barrier of magical force appears and "
            "protects you. Until the start of your next turn, you have a +5 bonus to AC, "
            "including against the triggering attack, and you take no damage from magic missile.",
        ),
    },
    # =========================================================================
    # Abilities
    # =========================================================================
    RuleCategory.ABILITIES: {
        "strength": (
            "Strength",
            "Strength measures bodily power, athletic training, and the extent to which you "
            "can exert raw physical force. A Strength check can model any attempt to lift, "
            "push, pull, or break something, to force your body through a space, or to "
            "otherwise apply brute force to a situation.",
        ),
        "dexterity": (
            "Dexterity",
            "Dexterity measures agility, reflexes, and balance. A Dexterity check can model "
            "any attempt to move nimbly, quickly, or quietly, or to keep from falling on "
            "tricky footing.",
        ),
        "constitution": (
            "Constitution",
            "Constitution measures health, stamina, and vital force. Constitution checks are "
            "uncommon, and no skills apply to Constitution checks, because the endurance "
            "this ability represents is largely passive rather than involving a specific "
            "effort on the part of a character or monster.",
        ),
        "intelligence": (
            "Intelligence",
            "Intelligence measures reasoning ability, memory, and analytical thinking. An "
            "Intelligence check comes into play when you need to draw on logic, education, "
            "memory, or deductive reasoning.",
        ),
        "wisdom": (
            "Wisdom",
            "Wisdom reflects how attuned you are to the world around you and represents "
            "perceptiveness and intuition. A Wisdom check might reflect an effort to read "
            "body language, understand someone's feelings, notice things about the "
            "environment, or care for an injured person.",
        ),
        "charisma": (
            "Charisma",
            "Charisma measures your ability to interact effectively with others. It includes "
            "such factors as confidence and eloquence, and it can represent a charming or "
            "commanding personality. A Charisma check might arise when you try to influence "
            "or entertain others.",
        ),
    },
    # =========================================================================
    # General
    # =========================================================================
    RuleCategory.GENERAL: {
        "advantage_disadvantage": (
            "Advantage and Disadvantage",
            "Sometimes a special ability or spell tells you that you have advantage or "
            "disadvantage on an ability check, a saving throw, or an attack roll. When that "
            "happens, you roll a second d20 when you make the roll. Use the higher of the "
            "two rolls if you have advantage, and use the lower roll if you have disadvantage.",
        ),
        "proficiency_bonus": (
            "Proficiency Bonus",
            "Characters have a proficiency bonus determined by level. Monsters also have "
            "this bonus, which is incorporated in their stat blocks. The bonus is used in "
            "the rules on ability checks, saving throws, and attack rolls. Your proficiency "
            "bonus can't be added to a single die roll or other number more than once.",
        ),
        "difficulty_class": (
            "Difficulty Class",
            "The Difficulty Class (DC) of a task represents how hard it is to accomplish. "
            "Typical DCs: Very easy (5), Easy (10), Medium (15), Hard (20), Very hard (25), "
            "Nearly impossible (30).",
        ),
        "critical_hits": (
            "Critical Hits",
            "When you score a critical hit, you get to roll extra dice for the attack's "
            "damage against the target. Roll all of the attack's damage dice twice and add "
            "them together. Then add any relevant modifiers as normal.",
        ),
    },
}
