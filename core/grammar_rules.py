"""Static French grammar rule catalog."""

from .models import Category, Difficulty, GrammarRule, PracticeItem, RuleExample

_RULES = [
    # Contractions
    GrammarRule(
        id='contraction-au',
        category=Category.CONTRACTIONS,
        statement='à + le = au (mandatory contraction)',
        explanation='When the preposition "à" is followed by the masculine definite article "le", '
                    'they must contract to form "au". This is mandatory in French.',
        examples=(
            RuleExample('Je vais au parc', 'Je vais à le parc', 'I go to the park'),
            RuleExample('Il est au cinéma', 'Il est à le cinéma', 'He is at the cinema'),
            RuleExample('au marché', 'à le marché', 'to the market'),
        ),
        exceptions=(
            'à + la = à la (no contraction): Je vais à la plage',
            "à + l' = à l' (no contraction): Je vais à l'école",
            'à + les = aux (contraction): Je parle aux enfants',
        ),
        common_mistakes=(
            'Using "à le" instead of "au"',
            'Confusing "au" (à + le) with "du" (de + le)',
            'Not contracting when "le" follows "à"',
        ),
        related_rules=('contraction-du', 'prepositions-place'),
        difficulty=Difficulty.BEGINNER,
        practice_items=(
            PracticeItem('Transform: à le restaurant → __________', 'au restaurant'),
            PracticeItem('Transform: à le bureau → __________', 'au bureau'),
            PracticeItem('Fix the error: Je vais à le stade', 'Je vais au stade'),
        ),
    ),
    GrammarRule(
        id='contraction-du',
        category=Category.CONTRACTIONS,
        statement='de + le = du (mandatory contraction)',
        explanation='When the preposition "de" is followed by the masculine definite article "le", '
                    'they must contract to form "du".',
        examples=(
            RuleExample('Je viens du parc', 'Je viens de le parc', 'I come from the park'),
            RuleExample('Le chat du voisin', 'Le chat de le voisin', "The neighbor's cat"),
            RuleExample('du magasin', 'de le magasin', 'from the store'),
        ),
        exceptions=(
            'de + la = de la (no contraction): Je viens de la maison',
            "de + l' = de l' (no contraction): Je viens de l'école",
            'de + les = des (contraction): Le livre des enfants',
        ),
        common_mistakes=(
            'Using "de le" instead of "du"',
            'Confusing partitive "du" with contraction "du"',
        ),
        related_rules=('contraction-au', 'partitive-article'),
        difficulty=Difficulty.BEGINNER,
        practice_items=(
            PracticeItem('Transform: de le musée → __________', 'du musée'),
            PracticeItem('Fix: Le livre de le professeur', 'Le livre du professeur'),
        ),
    ),
    GrammarRule(
        id='contraction-aux',
        category=Category.CONTRACTIONS,
        statement='à + les = aux (mandatory contraction)',
        explanation='When "à" precedes the plural article "les", they contract to "aux".',
        examples=(
            RuleExample('Je parle aux enfants', 'Je parle à les enfants', 'I speak to the children'),
            RuleExample('aux États-Unis', 'à les États-Unis', 'to the United States'),
        ),
        related_rules=('contraction-au', 'plural-articles'),
        difficulty=Difficulty.BEGINNER,
        practice_items=(
            PracticeItem('Transform: à les étudiants → __________', 'aux étudiants'),
        ),
    ),

    GrammarRule(
        id='contraction-des',
        category=Category.CONTRACTIONS,
        statement='de + les = des (mandatory contraction)',
        explanation='When "de" precedes the plural article "les", they contract to "des".',
        examples=(
            RuleExample('Le livre des enfants', 'Le livre de les enfants', "The children's book"),
            RuleExample('Je parle des vacances', 'Je parle de les vacances', 'I talk about the holidays'),
        ),
        common_mistakes=(
            'Using "de les" instead of "des"',
            'Confusing contracted "des" with the indefinite plural "des"',
        ),
        related_rules=('contraction-du', 'partitive-article'),
        difficulty=Difficulty.BEGINNER,
        practice_items=(
            PracticeItem('Transform: de les élèves → __________', 'des élèves'),
        ),
    ),

    # Gender & articles
    GrammarRule(
        id='gender-article-masculine',
        category=Category.GENDER_AGREEMENT,
        statement='Masculine nouns use "le" (or "un" for indefinite)',
        explanation='French nouns have grammatical gender. Masculine nouns require masculine articles.',
        examples=(
            RuleExample('le chat', translation='the cat', note='masculine noun'),
            RuleExample('le livre', translation='the book'),
            RuleExample('un garçon', translation='a boy'),
        ),
        hints=(
            'Nouns ending in -age are usually masculine (le garage, le village)',
            'Nouns ending in -ment are usually masculine (le gouvernement)',
            'Nouns ending in -eau are usually masculine (le château, le bateau)',
            'Days, months, seasons are masculine (le lundi, le printemps)',
        ),
        exceptions=(
            'la plage: ends in -age but feminine',
            'la page: ends in -age but feminine',
        ),
        related_rules=('gender-article-feminine', 'adjective-agreement'),
        difficulty=Difficulty.BEGINNER,
        practice_items=(
            PracticeItem('Is "table" masculine or feminine?', 'feminine (la table)', 'ends in -e'),
            PracticeItem('Choose the correct article: ___ château', 'le', 'ends in -eau'),
        ),
    ),
    GrammarRule(
        id='gender-article-feminine',
        category=Category.GENDER_AGREEMENT,
        statement='Feminine nouns use "la" (or "une" for indefinite)',
        explanation='Feminine nouns require feminine articles in French.',
        examples=(
            RuleExample('la maison', translation='the house'),
            RuleExample('la table', translation='the table'),
            RuleExample('une fille', translation='a girl'),
        ),
        hints=(
            'Nouns ending in -tion/-sion are usually feminine (la nation, la passion)',
            'Nouns ending in -té are usually feminine (la liberté, la beauté)',
            'Nouns ending in -ette are usually feminine (la cigarette)',
            'Nouns ending in -ence/-ance are usually feminine (la science, la danse)',
        ),
        exceptions=(
            'le musée: ends in -ée but masculine',
            'le lycée: ends in -ée but masculine',
        ),
        related_rules=('gender-article-masculine', 'adjective-agreement'),
        difficulty=Difficulty.BEGINNER,
    ),

    # Verb conjugation
    GrammarRule(
        id='passe-compose-etre',
        category=Category.VERB_CONJUGATION,
        statement='Passé composé with être: past participle agrees with subject',
        explanation='Verbs using être as auxiliary (DR & MRS VANDERTRAMP) require past participle '
                    'agreement with the subject in gender and number.',
        examples=(
            RuleExample('Elle est allée', 'Elle est allé', 'She went', 'feminine subject'),
            RuleExample('Ils sont arrivés', 'Ils sont arrivé', 'They arrived', 'plural'),
            RuleExample('Je suis venu(e)', translation='I came', note='gender depends on speaker'),
        ),
        hints=(
            'Être verbs: aller, venir, arriver, partir, entrer, sortir, monter, descendre, '
            'naître, mourir, rester, tomber, retourner, devenir',
        ),
        common_mistakes=(
            'Forgetting to add -e for feminine subjects',
            'Forgetting to add -s for plural subjects',
            'Using avoir instead of être for movement verbs',
        ),
        related_rules=('passe-compose-avoir', 'adjective-agreement'),
        difficulty=Difficulty.INTERMEDIATE,
        practice_items=(
            PracticeItem('Conjugate: Elle (aller) au cinéma → __________', 'Elle est allée au cinéma'),
            PracticeItem('Fix: Nous sommes arrivé hier', 'Nous sommes arrivés hier'),
        ),
    ),
    GrammarRule(
        id='passe-compose-avoir',
        category=Category.VERB_CONJUGATION,
        statement='Passé composé with avoir: no agreement (except with preceding direct object)',
        explanation='Most verbs use avoir as auxiliary in passé composé. '
                    'The past participle does not agree with the subject.',
        examples=(
            RuleExample('Il a mangé', translation='He ate'),
            RuleExample('Elle a mangé', translation='She ate', note='same form for masculine/feminine'),
            RuleExample('Ils ont parlé', translation='They spoke'),
        ),
        exceptions=(
            "Agreement with preceding direct object: Les pommes que j'ai mangées",
        ),
        related_rules=('passe-compose-etre', 'direct-object-pronouns'),
        difficulty=Difficulty.INTERMEDIATE,
    ),
    GrammarRule(
        id='present-tense-regular-er',
        category=Category.VERB_CONJUGATION,
        statement='Regular -er verbs: endings are -e, -es, -e, -ons, -ez, -ent',
        explanation='Verbs ending in -er follow a regular pattern in present tense.',
        examples=(
            RuleExample('Nous parlons français', 'Nous parlez français', 'We speak French'),
            RuleExample('Tu manges une pomme', 'Tu mange une pomme', 'You eat an apple'),
            RuleExample('Ils parlent vite', translation='They speak quickly'),
        ),
        related_rules=('present-tense-ir', 'present-tense-re'),
        difficulty=Difficulty.BEGINNER,
        practice_items=(
            PracticeItem('Conjugate "aimer" with "je"', "j'aime"),
            PracticeItem('Conjugate "parler" with "nous"', 'nous parlons'),
        ),
    ),

    # Adjective agreement
    GrammarRule(
        id='adjective-agreement',
        category=Category.ADJECTIVE_AGREEMENT,
        statement='Adjectives agree in gender and number with the noun they modify',
        explanation='French adjectives change form to match the gender (masculine/feminine) '
                    'and number (singular/plural) of the noun.',
        examples=(
            RuleExample('une voiture belle', 'une voiture beau', 'a beautiful car', 'feminine'),
            RuleExample('des chats grands', 'des chats grand', 'big cats', 'plural'),
            RuleExample('un homme intelligent', translation='an intelligent man'),
            RuleExample('une femme intelligente', translation='an intelligent woman',
                        note='add -e for feminine'),
        ),
        hints=(
            'Add -e for feminine: petit → petite',
            'Add -s for plural: petit → petits',
            'Add -es for feminine plural: petit → petites',
            'No change if already ends in -e: rouge → rouge (both genders)',
        ),
        exceptions=(
            '-x stays same in masculine plural: heureux → heureux (m.pl.)',
            'Irregular: beau → belle, nouveau → nouvelle, vieux → vieille',
        ),
        related_rules=('gender-article-masculine', 'gender-article-feminine', 'adjective-position'),
        difficulty=Difficulty.BEGINNER,
        practice_items=(
            PracticeItem('Agree: une robe (blanc) → __________', 'une robe blanche'),
            PracticeItem('Agree: des maisons (grand) → __________', 'des maisons grandes'),
        ),
    ),

    # Prepositions
    GrammarRule(
        id='prepositions-place',
        category=Category.PREPOSITIONS,
        statement='Using correct prepositions with places: à (to/at), de (from), en/au (in/to countries)',
        explanation='French uses different prepositions for locations depending on context.',
        examples=(
            RuleExample('Je vais à Paris', translation='I go to Paris', note='cities use à'),
            RuleExample('Je suis en France', translation='I am in France', note='feminine countries use en'),
            RuleExample('Je vais au Canada', translation='I go to Canada', note='masculine countries use au'),
            RuleExample('Je viens de Londres', translation='I come from London'),
        ),
        hints=(
            'Cities: à (à Lyon, à Marseille)',
            'Feminine countries: en (en France, en Italie)',
            'Masculine countries: au (au Japon, au Brésil)',
            'Plural countries: aux (aux États-Unis)',
        ),
        related_rules=('contraction-au', 'contraction-du'),
        difficulty=Difficulty.INTERMEDIATE,
    ),

    # Pronouns
    GrammarRule(
        id='direct-object-pronouns',
        category=Category.PRONOUNS,
        statement='Direct object pronouns: le, la, les, me, te, nous, vous',
        explanation='Direct object pronouns replace direct object nouns and come before the verb.',
        examples=(
            RuleExample('Je le vois', 'Je vois le', 'I see it (the cat)', 'masculine singular'),
            RuleExample('Il la mange', 'Il mange la', 'He eats it (the apple)', 'feminine singular'),
            RuleExample('Nous les aimons', 'Nous aimons les', 'We love them (the films)', 'plural'),
        ),
        hints=('Pronoun order: me/te/nous/vous, le/la/les, lui/leur, y, en',),
        related_rules=('indirect-object-pronouns', 'pronoun-order'),
        difficulty=Difficulty.INTERMEDIATE,
    ),

    # Negation
    GrammarRule(
        id='negation-ne-pas',
        category=Category.NEGATION,
        statement='Negation: ne ... pas surrounds the verb',
        explanation='To make a sentence negative, place "ne" before the verb and "pas" after it.',
        examples=(
            RuleExample('Je ne parle pas français', 'Je pas parle français', "I don't speak French"),
            RuleExample('Il ne mange pas', 'Il ne pas mange', "He doesn't eat"),
            RuleExample("Je n'aime pas", translation="I don't like", note="ne → n' before vowel"),
        ),
        hints=(
            'ne ... jamais (never): Je ne mange jamais de viande',
            'ne ... plus (no longer): Il ne fume plus',
            'ne ... rien (nothing): Je ne vois rien',
            'ne ... personne (nobody): Je ne connais personne',
        ),
        related_rules=('negation-complex',),
        difficulty=Difficulty.BEGINNER,
        practice_items=(
            PracticeItem('Make negative: Il parle anglais', 'Il ne parle pas anglais'),
            PracticeItem('Make negative: Je vais au cinéma', 'Je ne vais pas au cinéma'),
        ),
    ),

    # Partitive articles
    GrammarRule(
        id='partitive-article',
        category=Category.ARTICLES,
        statement="Partitive articles: du (m), de la (f), de l' (vowel), des (plural)",
        explanation='Partitive articles express "some" or an unspecified quantity.',
        examples=(
            RuleExample('Je mange du pain', translation='I eat (some) bread', note='masculine'),
            RuleExample('Elle boit de la limonade', translation='She drinks (some) lemonade', note='feminine'),
            RuleExample("Il y a de l'eau", translation='There is (some) water', note='vowel'),
        ),
        exceptions=(
            "In negative, du/de la/des → de/d': Je ne mange pas de pain",
        ),
        related_rules=('contraction-du', 'indefinite-articles'),
        difficulty=Difficulty.BEGINNER,
    ),
]

GRAMMAR_RULES = {rule.id: rule for rule in _RULES}


def get_rule(rule_id: str | None) -> GrammarRule | None:
    """Get a specific rule by ID, or None if it is not in the catalog."""
    if not rule_id:
        return None
    return GRAMMAR_RULES.get(rule_id)


def get_all_rules() -> list[GrammarRule]:
    return list(GRAMMAR_RULES.values())


def get_rules_by_category(category: Category | str) -> list[GrammarRule]:
    """Get all rules for a category. Accepts the enum or its string value."""
    try:
        category = Category(category)
    except ValueError:
        return []
    return [rule for rule in GRAMMAR_RULES.values() if rule.category == category]


def get_rules_by_difficulty(difficulty: Difficulty | str) -> list[GrammarRule]:
    try:
        difficulty = Difficulty(difficulty)
    except ValueError:
        return []
    return [rule for rule in GRAMMAR_RULES.values() if rule.difficulty == difficulty]


def get_related_rules(rule_id: str) -> list[GrammarRule]:
    """Get catalog rules related to rule_id. Related ids missing from the catalog are skipped."""
    rule = get_rule(rule_id)
    if not rule:
        return []
    return [GRAMMAR_RULES[related] for related in rule.related_rules if related in GRAMMAR_RULES]


def search_rules(keyword: str) -> list[GrammarRule]:
    """Case-insensitive search over statement, explanation and category."""
    keyword = (keyword or '').lower().strip()
    if not keyword:
        return []
    return [
        rule for rule in GRAMMAR_RULES.values()
        if keyword in rule.statement.lower()
        or keyword in rule.explanation.lower()
        or keyword in rule.category.value
    ]


def get_similar_examples(rule_id: str, count: int = 3) -> list[RuleExample]:
    """Get up to count example sentences for a rule."""
    rule = get_rule(rule_id)
    if not rule:
        return []
    return list(rule.examples[:count])


def get_practice_exercises(rule_id: str) -> list[PracticeItem]:
    rule = get_rule(rule_id)
    if not rule:
        return []
    return list(rule.practice_items)
